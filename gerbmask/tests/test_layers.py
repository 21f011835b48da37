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

from ..layers import (identify_file, load_layer, open_layer, layer_side, guess_layer_style, LayerStack,
                      BOTTOM_SILK_STYLE, DEFAULT_STYLE)
from ..rs274x import GerberFile
from ..excellon import ExcellonFile
from ..cam import BoardBounds
from ..utils import LayerLoadError
from .samples import *


@pytest.mark.parametrize('data, filename, kind', [
    (DRILL, None, 'excellon'),
    ('T01\nX1Y1\n', None, 'excellon'),
    (TRACE, 'board.gtl', 'gerber'),
    ('%FSLAX24Y24*%\n%ADD10C,1*%\nD10*\nT01*\n', None, 'gerber'),
    ('X1000Y1000\n', 'board.XLN', 'excellon'),
    ('X1000Y1000\n', 'board.drd', 'excellon'),
    ('', 'empty.gbr', 'gerber'),
    ])
def test_identify_file(data, filename, kind):
    assert identify_file(data, filename) == kind


def test_load_layer():
    assert isinstance(load_layer(TRACE, 'trace.gtl'), GerberFile)
    assert isinstance(load_layer(DRILL.encode(), 'holes.txt'), ExcellonFile)
    assert load_layer(TRACE, 'trace.gtl').name == 'trace.gtl'


@pytest.mark.parametrize('data', [b'\xff\xfe\xfa\x00binary', b'M48\x00\x01\x02'])
def test_load_binary_garbage(data):
    with pytest.raises(LayerLoadError):
        load_layer(data, 'garbage.bin')


def test_open_layer(write_file):
    layer = open_layer(write_file('board.drl', DRILL))
    assert isinstance(layer, ExcellonFile)
    assert layer.name == 'board.drl'


@pytest.mark.parametrize('name, side', [
    ('board.GTL', 'top'),
    ('board.gts', 'top'),
    ('board-F.SilkS.gbr', 'top'),
    ('board-F.Cu.gbr', 'top'),
    ('board.gbl', 'bottom'),
    ('board-B.Paste.gbr', 'bottom'),
    ('front_copper.gbr', 'top'),
    ('back_silk.gbr', 'bottom'),
    ('top_and_bottom.gbr', 'both'),
    ('board.drl', 'both'),
    ])
def test_layer_side(name, side):
    assert layer_side(name) == side


@pytest.mark.parametrize('name, kind, color', [
    ('board.drl', 'drill', '#ffffff'),
    ('board-Edge_Cuts.gm1', 'outline', '#e67e22'),
    ('board.gtp', 'paste', '#f1c40f'),
    ('board-B.Mask.gbr', 'mask', '#27ae60'),
    ('board.gto', 'silk', '#ecf0f1'),
    ('board-F.Cu.gbr', 'copper', '#c0392b'),
    ('board.gbl', 'copper', '#2980b9'),
    ('notes.gbr', 'other', '#95a5a6'),
    ])
def test_guess_layer_style(name, kind, color):
    style = guess_layer_style(name)
    assert style.kind == kind
    assert style.color == color


def test_bottom_silk_style():
    assert guess_layer_style('board.gbo') == BOTTOM_SILK_STYLE
    assert guess_layer_style('board-B.SilkS.gbr') == BOTTOM_SILK_STYLE
    assert guess_layer_style('notes.txt') == DEFAULT_STYLE
    assert guess_layer_style('board.gts').opacity == 0.5
    assert guess_layer_style('board.drl').order > guess_layer_style('board.gtl').order


def test_stack(board_dir):
    stack = LayerStack.open([board_dir])
    assert len(stack) == 3
    assert stack.outline.name == 'board-Edge_Cuts.gm1'
    assert [layer.name for layer in stack.sorted_layers()] == ['board-F_Cu.gtl', 'board-Edge_Cuts.gm1', 'board.drl']
    assert [layer.name for layer in stack.top_side] == ['board-F_Cu.gtl', 'board-Edge_Cuts.gm1', 'board.drl']
    assert [layer.name for layer in stack.bottom_side] == ['board-Edge_Cuts.gm1', 'board.drl']


def test_board_bounds_from_outline():
    stack = LayerStack.from_files({'board-F_Cu.gtl': TRACE, 'board.drl': DRILL, 'board-Edge_Cuts.gm1': OUTLINE})
    bounds = stack.board_bounds()
    assert (bounds.min_x, bounds.min_y) == (pytest.approx(-0.05), pytest.approx(-0.05))
    assert (bounds.max_x, bounds.max_y) == (pytest.approx(50.05), pytest.approx(30.05))


def test_board_bounds_without_outline():
    stack = LayerStack.from_files({'board-F_Cu.gtl': TRACE, 'board.drl': DRILL})
    assert stack.outline is None
    assert stack.board_bounds() == BoardBounds(-0.5, -0.5, 10.5, 5.5)
    assert stack.bounding_box() == ((-0.5, -0.5), (10.5, 5.5))


def test_empty_stack():
    assert LayerStack().board_bounds() is None
    assert LayerStack().bounding_box(default=((0, 0), (0, 0))) == ((0, 0), (0, 0))
