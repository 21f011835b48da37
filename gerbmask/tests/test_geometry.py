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
import shapely

from ..rs274x import GerberFile
from ..excellon import ExcellonFile
from ..cam import BoardBounds
from ..utils import GeometryWarning, sum_bounds
from .. import geometry as geo
from .. import graphic_primitives as gp
from .samples import *


def merged(data):
    return geo.merge_layer(GerberFile.from_string(data))


def test_trace_bounds():
    bounds = geo.geometry_bounds(merged(TRACE))
    assert bounds.min_x == pytest.approx(-0.5, abs=1e-3)
    assert bounds.min_y == pytest.approx(-0.5, abs=1e-3)
    assert bounds.max_x == pytest.approx(10.5, abs=1e-3)
    assert bounds.max_y == pytest.approx(0.5, abs=1e-3)


def test_region_area():
    geom = merged(SQUARE_REGION)
    assert geom.geom_type == 'MultiPolygon'
    assert geom.area == pytest.approx(100)


def test_clear_flash_cuts_hole():
    geom = merged(REGION_WITH_CLEAR_FLASH)
    assert geom.area == pytest.approx(100 - gp.circle(5, 5, 1).area, abs=1e-2)
    poly, = geom.geoms
    assert len(poly.interiors) == 1


def test_polarity_is_applied_in_order():
    # A dark flash after the clear one fills the hole again
    geom = merged(REGION_WITH_CLEAR_FLASH.replace('M02*', '%LPD*%\nX50000Y50000D03*\nM02*'))
    assert geom.area == pytest.approx(100, abs=1e-2)


def test_nested_region_contours_become_holes():
    data = SQUARE_REGION.replace('G37*', 'X20000Y20000D02*\nX80000Y20000D01*\nX80000Y80000D01*\nX20000Y80000D01*\n'
                                          'X20000Y20000D01*\nG37*')
    assert merged(data).area == pytest.approx(100 - 36)


def test_trace_joins():
    layer = GerberFile.from_string('%FSLAX24Y24*%\n%MOMM*%\n%ADD10C,1*%\nD10*\nX0Y0D02*\nX100000Y0D01*\n'
                                   'X100000Y100000D01*\nM02*\n')
    trace, = layer.objects
    geom = geo.trace_geometry(trace)
    # The outer corner is rounded by the join disk, so the area is a bit less than with a square corner.
    assert 20 < geom.area < 21.25
    assert geom.contains(shapely.Point(10.3, 0.3))
    assert not geom.contains(shapely.Point(10.49, -0.49))


def test_trace_with_arc():
    layer = GerberFile.from_string('%FSLAX24Y24*%\n%MOMM*%\n%ADD10C,0.2*%\nD10*\nX100000Y0D02*\n'
                                   'G03X-100000Y0I-100000J0D01*\nM02*\n')
    geom = geo.merge_layer(layer)
    bounds = geo.geometry_bounds(geom)
    assert bounds.max_y == pytest.approx(10.1, abs=1e-2)
    # Half annulus between radius 9.9 and 10.1, plus two half disks for the caps
    assert geom.area == pytest.approx(math.pi * (10.1**2 - 9.9**2) / 2 + math.pi * 0.1**2, rel=1e-2)


def test_flash_shapes():
    layer = GerberFile.from_string('%FSLAX24Y24*%\n%MOMM*%\n%ADD10R,2X1*%\n%ADD11O,2X1*%\n%ADD12P,2X4*%\n'
                                   '%ADD13C,2X1*%\nD10*\nX0Y0D03*\nD11*\nX100000Y0D03*\nD12*\nX200000Y0D03*\n'
                                   'D13*\nX300000Y0D03*\nM02*\n')
    rect, obround, polygon, donut = [geo.flash_geometry(flash) for flash in layer.objects]
    assert rect.area == pytest.approx(2)
    assert obround.area == pytest.approx(1 + math.pi * 0.25, rel=1e-2)
    assert obround.bounds == pytest.approx((9, -0.5, 11, 0.5))
    assert polygon.area == pytest.approx(2)
    assert donut.area == pytest.approx(math.pi * (1 - 0.25), rel=1e-2)


def test_macro_flash():
    layer = GerberFile.from_string('%FSLAX24Y24*%\n%MOMM*%\n%AMDONUT*1,1,$1,0,0*1,0,$2,0,0*%\n%ADD10DONUT,2X1*%\n'
                                   'D10*\nX50000Y50000D03*\nM02*\n')
    geom = geo.merge_layer(layer)
    assert geom.area == pytest.approx(math.pi * (1 - 0.25), rel=1e-2)
    assert geo.geometry_bounds(geom).center == pytest.approx((5, 5))


def test_broken_primitive_is_skipped():
    with pytest.warns(SyntaxWarning):
        layer = GerberFile.from_string('%FSLAX24Y24*%\n%MOMM*%\n%ADD10NOPE,1*%\n%ADD11C,1*%\n'
                                       'D10*\nX0Y0D03*\nD11*\nX50000Y0D03*\nM02*\n')

    task = geo.MergeTask(layer)
    with pytest.warns(GeometryWarning):
        steps = list(task)
    assert task.skipped == 1
    assert len(steps) == 2
    assert task.result.area == pytest.approx(gp.circle(0, 0, 0.5).area, rel=1e-2)


def test_progress():
    layer = GerberFile.from_string(REGION_WITH_CLEAR_FLASH)
    reports = []
    geo.merge_layer(layer, progress=reports.append)
    assert [(p.done, p.total) for p in reports] == [(1, 2), (2, 2)]
    assert reports[-1].percent == 100
    assert geo.MergeProgress(0, 0).percent == 100


def test_abandoned_task_has_no_result():
    task = geo.MergeTask(GerberFile.from_string(REGION_WITH_CLEAR_FLASH))
    next(iter(task))
    assert task.result is None


def test_empty_layer():
    with pytest.warns(SyntaxWarning):
        layer = GerberFile.from_string('')
    geom = geo.merge_layer(layer)
    assert geom.is_empty
    assert geo.geometry_bounds(geom) is None
    assert geo.to_path_d(geom) == ''
    assert layer.bounds == BoardBounds.default()


def test_apply_polarity():
    a = gp.rectangle(0, 0, 2, 2)
    b = gp.rectangle(1, 0, 2, 2)
    assert geo.apply_polarity(a, b, True).area == pytest.approx(6)
    assert geo.apply_polarity(a, b, False).area == pytest.approx(2)


def test_merge_settings_validation():
    with pytest.raises(ValueError):
        geo.MergeSettings(grid_size=0)
    with pytest.raises(ValueError):
        geo.MergeSettings(circle_quad_segs=0)
    with pytest.raises(ValueError):
        geo.MergeSettings(flatten_tolerance=-1)


def test_coarse_settings():
    settings = geo.MergeSettings(circle_quad_segs=1)
    geom = geo.merge_layer(GerberFile.from_string(TRACE), settings)
    # Caps degrade to diamonds
    assert geom.area == pytest.approx(10 + 0.5, abs=1e-2)


def test_mirror_twice_is_identity():
    geom = merged(REGION_WITH_CLEAR_FLASH)
    once = geo.mirror(geom, 7)
    assert not once.equals(geom)
    assert geo.geometry_bounds(once).min_x == pytest.approx(4)
    assert geo.mirror(once, 7).equals_exact(geom, 1e-9)


def test_invert():
    geom = merged(REGION_WITH_CLEAR_FLASH)
    bounds = geo.geometry_bounds(geom)
    inverted = geo.invert(geom, bounds)
    assert inverted.area == pytest.approx(gp.circle(5, 5, 1).area, abs=1e-2)

    with_margin = geo.invert(geom, bounds, margin=1)
    assert with_margin.area == pytest.approx(12*12 - 100 + gp.circle(5, 5, 1).area, abs=1e-2)
    b = geo.geometry_bounds(with_margin)
    assert (b.min_x, b.min_y, b.max_x, b.max_y) == pytest.approx((-1, -1, 11, 11))


def test_path_data_orientation():
    d = geo.to_path_d(merged(REGION_WITH_CLEAR_FLASH))
    assert d.count('M ') == 2
    assert d.count('Z') == 2
    assert 'A' not in d


def test_combined_bounds():
    gerber = GerberFile.from_string(TRACE)
    drill = ExcellonFile.from_string(DRILL)

    trace_bounds = geo.geometry_bounds(geo.merge_layer(gerber))
    drill_bounds = geo.geometry_bounds(geo.merge_layer(drill))
    combined = trace_bounds.union(drill_bounds)

    assert combined.min_x == pytest.approx(-0.5, abs=1e-3)
    assert combined.min_y == pytest.approx(-0.5, abs=1e-3)
    assert combined.max_x == pytest.approx(10.5, abs=1e-3)
    assert combined.max_y == pytest.approx(5.5, abs=1e-3)
    assert sum_bounds([gerber.bounding_box(), drill.bounding_box()]) == ((-0.5, -0.5), (10.5, 5.5))
