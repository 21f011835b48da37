#!/usr/bin/env python
# -*- coding: utf-8 -*-
#
# Copyright 2022 Jan Sebastian Götte <gerbonara@jaseg.de>
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
#

import pytest

from ..excellon import ExcellonFile
from ..cam import FileSettings
from ..graphic_objects import Flash
from ..utils import Inch, MM, UnknownStatementWarning
from .samples import *


def test_metric_decimal():
    f = ExcellonFile.from_string(DRILL, name='board.drl')
    assert f.kind == 'excellon'
    hit, = f.objects
    assert isinstance(hit, Flash)
    assert (hit.x, hit.y) == (5, 5)
    assert hit.tool is f.apertures[1]
    assert hit.tool.params == (1.0,)
    assert f.bounding_box() == ((4.5, 4.5), (5.5, 5.5))


def test_default_inch_format():
    f = ExcellonFile.from_string('M48\nT1C0.04\n%\nT1\nX012500Y002500\nM30\n')
    hit, = f.objects
    assert hit.x == pytest.approx(31.75)
    assert hit.y == pytest.approx(6.35)
    assert hit.tool.params == (pytest.approx(1.016),)
    assert f.import_settings.unit == Inch


def test_metric_default_format():
    f = ExcellonFile.from_string('M48\nMETRIC\nT1C0.8\n%\nT1\nX5000Y12500\nM30\n')
    hit, = f.objects
    assert (hit.x, hit.y) == (pytest.approx(5), pytest.approx(12.5))
    assert f.import_settings.number_format == (3, 3)


def test_m71_metric_unit_code():
    f = ExcellonFile.from_string('M48\nM71\nT1C0.5\n%\nT1\nX5000Y5000\nM30\n')
    hit, = f.objects
    assert (hit.x, hit.y) == (pytest.approx(5), pytest.approx(5))
    assert hit.tool.params == (pytest.approx(0.5),)
    assert f.import_settings.unit == MM
    assert f.import_settings.number_format == (3, 3)


def test_m72_switches_back_to_inch():
    f = ExcellonFile.from_string('M48\nM71\nM72\nT1C0.04\n%\nT1\nX012500Y002500\nM30\n')
    hit, = f.objects
    assert hit.x == pytest.approx(31.75)
    assert hit.y == pytest.approx(6.35)
    assert hit.tool.params == (pytest.approx(1.016),)
    assert f.import_settings.unit == Inch
    assert f.import_settings.number_format == (2, 4)


def test_explicit_format_and_leading_zeros():
    # LZ: leading zeros are kept, so trailing ones are suppressed
    f = ExcellonFile.from_string('M48\nINCH,LZ,00.0000\nT1C0.04\n%\nT1\nX01Y0025\nM30\n')
    hit, = f.objects
    assert hit.x == pytest.approx(25.4)
    assert hit.y == pytest.approx(6.35)
    assert f.import_settings.zeros == 'trailing'


def test_settings_override():
    settings = FileSettings(unit=MM, zeros='leading', number_format=(3, 3))
    f = ExcellonFile.from_string('T1C1.0\nT1\nX1000Y2000\n', settings=settings)
    hit, = f.objects
    assert (hit.x, hit.y) == (pytest.approx(1), pytest.approx(2))


def test_inline_tool_selection():
    f = ExcellonFile.from_string('M48\nMETRIC\nT1C0.5\nT2C1.5\n%\nT1X1.0Y1.0\nX2.0Y2.0T2\nX3.0Y3.0\nM30\n')
    assert [hit.tool.params[0] for hit in f.objects] == [0.5, 1.5, 1.5]
    assert [(hit.x, hit.y) for hit in f.objects] == [(1, 1), (2, 2), (3, 3)]


def test_modal_coordinates():
    f = ExcellonFile.from_string('M48\nMETRIC\nT1C0.5\n%\nT1\nX1.0Y1.0\nX2.0\nY3.0\nM30\n')
    assert [(hit.x, hit.y) for hit in f.objects] == [(1, 1), (2, 1), (2, 3)]


def test_incremental_mode():
    f = ExcellonFile.from_string('M48\nMETRIC\nT1C0.5\n%\nG91\nT1\nX1.0Y1.0\nX1.0\nM30\n')
    assert [(hit.x, hit.y) for hit in f.objects] == [(1, 1), (2, 1)]


def test_undefined_tool_drops_hits():
    with pytest.warns(SyntaxWarning, match='Undefined tool'):
        f = ExcellonFile.from_string('M48\nMETRIC\nT1C0.5\n%\nT3\nX1.0Y1.0\nT1\nX2.0Y2.0\nM30\n')
    hit, = f.objects
    assert (hit.x, hit.y) == (2, 2)


def test_unload_tool():
    with pytest.warns(SyntaxWarning, match='without a selected tool'):
        f = ExcellonFile.from_string('M48\nMETRIC\nT1C0.5\n%\nT1\nX1.0Y1.0\nT0\nX2.0Y2.0\nM30\n')
    assert len(f.objects) == 1


def test_comments_and_unknown_statements():
    with pytest.warns(UnknownStatementWarning):
        f = ExcellonFile.from_string('M48\n; drill file\nMETRIC\nFOOBAR\nT1C0.5\n%\nT1\nX1.0Y1.0\nM30\n')
    assert f.comments == ['drill file']
    assert len(f.objects) == 1


def test_routing_is_skipped():
    with pytest.warns(SyntaxWarning, match='Routing'):
        f = ExcellonFile.from_string('M48\nMETRIC\nT1C0.5\n%\nT1\nG00X1.0Y1.0\nM15\nG01X5.0Y1.0\nM16\nX7.0Y7.0\nM30\n')
    hit, = f.objects
    assert (hit.x, hit.y) == (7, 7)


def test_statements_after_end_of_program():
    with pytest.warns(SyntaxWarning, match='end of program'):
        f = ExcellonFile.from_string('M48\nMETRIC\nT1C0.5\n%\nT1\nM30\nX1.0Y1.0\n')
    assert not f.objects
