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

import math

import pytest

from ..aperture_macros.parse import ApertureMacro, VariableDefinition
from ..aperture_macros.expression import parse_expression, tokenize, ConstantExpression
from ..aperture_macros import primitive as ap
from ..apertures import Aperture
from ..utils import Inch
from .. import graphic_primitives as gp


@pytest.mark.parametrize('text, binding, value', [
    ('1', {}, 1),
    ('1.5+2', {}, 3.5),
    ('$1x2+1', {1: 3}, 7),
    ('$1X$2', {1: 3, 2: 4}, 12),
    ('2*3-1', {}, 5),
    ('-(1+2)/3', {}, -1),
    ('1-2-3', {}, -4),
    ('8/2/2', {}, 2),
    ('+.5', {}, 0.5),
    ('$3', {}, 0),
    ])
def test_expression(text, binding, value):
    assert parse_expression(text).calculate(binding) == pytest.approx(value)


@pytest.mark.parametrize('text', ['', '1+', '(1', '1)', '$', 'a+1', '1,2'])
def test_malformed_expression(text):
    with pytest.raises(SyntaxError):
        parse_expression(text)


def test_tokenize():
    assert tokenize('$1x(0.5+2)') == [('param', '1'), ('op', 'x'), ('op', '('), ('number', '0.5'), ('op', '+'),
                                      ('number', '2'), ('op', ')')]


def test_division_by_zero_evaluates_to_zero():
    with pytest.warns(SyntaxWarning, match=r'expression 1/\$1: '):
        assert ap.evaluate(parse_expression('1/$1'), {1: 0}) == 0


def test_parse_macro():
    macro = ApertureMacro.parse_macro('TEST', '0 a comment*\n$3=$1x2*\n1,1,$3,0,0*\n21,0,$2,$2,0,0,45*')
    assert macro.comments == ('a comment',)
    assert isinstance(macro.statements[0], VariableDefinition)
    circle, rect = macro.primitives
    assert isinstance(circle, ap.Circle)
    assert isinstance(rect, ap.CenterLine)
    assert rect.rotation == ConstantExpression(45)


def test_unknown_primitive():
    with pytest.warns(SyntaxWarning, match='Unsupported primitive'):
        macro = ApertureMacro.parse_macro('TEST', '1,1,1,0,0*99,1,2,3*')
    assert len(macro.primitives) == 1


def test_malformed_field_degrades_to_zero():
    with pytest.warns(SyntaxWarning):
        macro = ApertureMacro.parse_macro('TEST', '1,1,1+,0,0*')
    assert macro.to_geometry().is_empty


def test_exposure_then_clear_is_empty():
    macro = ApertureMacro.parse_macro('TEST', '1,1,$1,0,0*1,0,$1,0,0*')
    assert macro.to_geometry((2,)).is_empty


def test_clear_before_exposure_has_no_effect():
    macro = ApertureMacro.parse_macro('TEST', '1,0,$1,0,0*1,1,$1,0,0*')
    assert macro.to_geometry((2,)).area == pytest.approx(gp.circle(0, 0, 1).area)


def test_variable_definition():
    macro = ApertureMacro.parse_macro('TEST', '$2=$1x2*1,1,$2,0,0*')
    assert macro.to_geometry((1,)).bounds == pytest.approx((-1, -1, 1, 1))


def test_circle_rotation_moves_center():
    macro = ApertureMacro.parse_macro('TEST', '1,1,1,2,0,90*')
    minx, miny, maxx, maxy = macro.to_geometry().bounds
    assert ((minx + maxx)/2, (miny + maxy)/2) == pytest.approx((0, 2))


def test_center_line_rotation():
    macro = ApertureMacro.parse_macro('TEST', '21,1,2,1,0,0,90*')
    assert macro.to_geometry().bounds == pytest.approx((-0.5, -1, 0.5, 1))


def test_lower_left_line():
    macro = ApertureMacro.parse_macro('TEST', '22,1,2,1,1,1,0*')
    assert macro.to_geometry().bounds == pytest.approx((1, 1, 3, 2))


def test_vector_line_has_round_caps():
    macro = ApertureMacro.parse_macro('TEST', '20,1,1,0,0,10,0,0*')
    assert macro.to_geometry().bounds == pytest.approx((-0.5, -0.5, 10.5, 0.5))
    assert ap.PRIMITIVE_CLASSES[2] is ap.VectorLine


def test_outline():
    macro = ApertureMacro.parse_macro('TEST', '4,1,4,0,0,1,0,1,1,0,1,0,0,0*')
    outline, = macro.primitives
    assert len(outline.coords) == 10
    geom = macro.to_geometry()
    assert geom.area == pytest.approx(1)


def test_polygon():
    macro = ApertureMacro.parse_macro('TEST', '5,1,4,0,0,2,0*')
    geom = macro.to_geometry()
    # Square with its corners on the axes
    assert geom.area == pytest.approx(2)
    assert geom.bounds == pytest.approx((-1, -1, 1, 1))


def test_thermal():
    macro = ApertureMacro.parse_macro('TEST', '7,0,0,4,2,0.5,0*')
    geom = macro.to_geometry()
    ring = gp.circle(0, 0, 2).area - gp.circle(0, 0, 1).area
    assert 0 < geom.area < ring
    assert len(geom.geoms) == 4


def test_macro_flash_in_inch():
    macro = ApertureMacro.parse_macro('CIRC', '1,1,$1,0,0*')
    aperture = Aperture.from_definition('CIRC', (0.1,), Inch)
    geom = aperture.flash(10, 20, {'CIRC': macro})
    minx, miny, maxx, maxy = geom.bounds
    assert maxx - minx == pytest.approx(2.54)
    assert ((minx + maxx)/2, (miny + maxy)/2) == pytest.approx((10, 20))


def test_undefined_macro():
    aperture = Aperture.from_definition('NOPE', (1,), Inch)
    with pytest.raises(ValueError):
        aperture.flash(0, 0, {})
