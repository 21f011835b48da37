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

"""
gerbmask.geometry
=================
**Polygon merge engine**

Converts the primitives of a :py:class:`.ParsedLayer` into shapely polygons and folds them into one polygon set in file
order: dark primitives are added, clear primitives are cut away. All boolean operations of one merge snap to the same
precision grid.
"""

import math
import warnings
from dataclasses import dataclass
from itertools import pairwise

import shapely
from shapely import affinity
from shapely.errors import GEOSException

from .cam import BoardBounds
from .utils import GeometryWarning
from . import graphic_objects as go
from . import graphic_primitives as gp


@dataclass
class MergeSettings:
    """ Tuning knobs of the merge engine. All lengths are in mm. """
    #: Maximum deviation of flattened arc chords from the true arc
    flatten_tolerance : float = 0.01
    #: Precision grid all boolean operations snap to
    grid_size : float = 0.001
    #: Segments per quarter circle for round caps, joins and circular flashes
    circle_quad_segs : int = gp.CIRCLE_QUAD_SEGS
    #: Minimum direction change in radian at a trace vertex that gets a round join
    join_threshold : float = 0.1

    # input validation
    def __setattr__(self, name, value):
        if name in ('flatten_tolerance', 'grid_size') and not value > 0:
            raise ValueError(f'{name} must be positive, not {value}')
        elif name == 'circle_quad_segs' and (int(value) != value or value < 1):
            raise ValueError(f'circle_quad_segs must be a positive integer, not {value}')
        elif name == 'join_threshold' and value < 0:
            raise ValueError(f'join_threshold must not be negative, not {value}')

        super().__setattr__(name, value)


@dataclass(frozen=True)
class MergeProgress:
    #: Number of primitives processed so far
    done : int
    #: Number of primitives in the layer
    total : int

    @property
    def percent(self):
        return 100.0 if self.total == 0 else 100.0 * self.done / self.total


def _turn_angle(p0, p1, p2):
    a1 = math.atan2(p1[1] - p0[1], p1[0] - p0[0])
    a2 = math.atan2(p2[1] - p1[1], p2[0] - p1[0])
    delta = abs(a2 - a1) % (2*math.pi)
    return min(delta, 2*math.pi - delta)


def trace_geometry(trace, settings=None):
    """ Stroke a :py:class:`~.graphic_objects.Trace`: one band per flattened segment, round caps at both ends and round
    joins at vertices where the trace changes direction by more than ``settings.join_threshold``. """
    settings = settings or MergeSettings()
    points = []
    for point in trace.points(settings.flatten_tolerance):
        if not points or not math.isclose(math.dist(points[-1], point), 0, abs_tol=1e-9):
            points.append(point)

    width, quad_segs = trace.width, settings.circle_quad_segs
    parts = [gp.circle(*points[0], width/2, quad_segs)]
    if len(points) > 1:
        parts.append(gp.circle(*points[-1], width/2, quad_segs))

    parts += [gp.bar(*p1, *p2, width) for p1, p2 in pairwise(points)]
    parts += [gp.circle(*p1, width/2, quad_segs)
              for p0, p1, p2 in zip(points, points[1:], points[2:])
              if _turn_angle(p0, p1, p2) > settings.join_threshold]
    return shapely.union_all(parts)


def flash_geometry(flash, macros=None, settings=None):
    settings = settings or MergeSettings()
    return flash.to_geometry(macros, settings.circle_quad_segs)


def region_geometry(region, settings=None):
    """ Fill a :py:class:`~.graphic_objects.Region`. Contours are combined by symmetric difference, so a contour nested
    inside another one becomes a hole. """
    settings = settings or MergeSettings()
    shape = gp.EMPTY
    for points in region.points(settings.flatten_tolerance):
        shape = shapely.symmetric_difference(shape, gp.outline(points))
    return shape


def primitive_geometry(obj, macros=None, settings=None):
    """ Convert any graphic object of a layer into a shapely geometry in mm. """
    match obj:
        case go.Trace():
            return trace_geometry(obj, settings)
        case go.Flash():
            return flash_geometry(obj, macros, settings)
        case go.Region():
            return region_geometry(obj, settings)
        case _:
            raise TypeError(f'Cannot convert {obj!r} into polygons')


def apply_polarity(acc, geom, polarity_dark, grid_size=None):
    """ One step of the polarity fold: add ``geom`` to ``acc`` for dark polarity, cut it away for clear polarity. """
    if polarity_dark:
        return shapely.union(acc, geom, grid_size=grid_size)
    return shapely.difference(acc, geom, grid_size=grid_size)


class MergeTask:
    """ Merge of one layer as a resumable task. Iterating over it processes one primitive per step and yields a
    :py:class:`.MergeProgress` after each. Once the iterator is exhausted, the merged polygon set is available as
    :py:attr:`result`. Abandoning the iteration early discards all intermediate state.

    Runs of dark primitives are collected and unioned in one go right before the next clear primitive, which is
    equivalent to adding them one by one.
    """

    def __init__(self, layer, settings=None):
        self.layer = layer
        self.settings = settings or MergeSettings()
        #: :py:class:`shapely.MultiPolygon` result, ``None`` until the task has finished.
        self.result = None
        #: Number of primitives that could not be converted and were left out
        self.skipped = 0

    @property
    def total(self):
        return len(self.layer.objects)

    def _union(self, acc, pending):
        if not pending:
            return acc
        return shapely.union_all([acc, *pending], grid_size=self.settings.grid_size)

    def __iter__(self):
        acc, pending = gp.EMPTY, []
        total = self.total

        for done, obj in enumerate(self.layer.objects, start=1):
            try:
                geom = primitive_geometry(obj, self.layer.macros, self.settings)

                if geom.is_empty:
                    pass
                elif obj.polarity_dark:
                    pending.append(geom)
                else:
                    acc = apply_polarity(self._union(acc, pending), geom, False, self.settings.grid_size)
                    pending = []

            except (ValueError, TypeError, GEOSException) as e:
                warnings.warn(f'{self.layer.name or "<unknown>"}: Cannot convert {obj} into polygons: {e}. Skipping.',
                              GeometryWarning)
                self.skipped += 1

            yield MergeProgress(done, total)

        self.result = gp.polygons(self._union(acc, pending))

    def run(self, progress=None):
        """ Run this task to completion, calling ``progress`` with a :py:class:`.MergeProgress` after each step. """
        for step in self:
            if progress is not None:
                progress(step)
        return self.result


def merge_layer(layer, settings=None, progress=None):
    """ Merge all primitives of ``layer`` into one polygon set, honoring their polarity.

    :param layer: :py:class:`.ParsedLayer`
    :param settings: :py:class:`.MergeSettings`
    :param progress: optional callable receiving a :py:class:`.MergeProgress` after every primitive
    :rtype: :py:class:`shapely.MultiPolygon`
    """
    return MergeTask(layer, settings).run(progress)


def invert(geom, bounds, margin=0, grid_size=None):
    """ Negative of ``geom`` inside the board rectangle ``bounds`` (a :py:class:`.BoardBounds`) grown by ``margin``. """
    bounds = bounds.grown(margin) if margin else bounds
    board = shapely.box(bounds.min_x, bounds.min_y, bounds.max_x, bounds.max_y)
    return gp.polygons(shapely.difference(board, geom, grid_size=grid_size))


def mirror(geom, center_x):
    """ Mirror ``geom`` at the vertical line ``x = center_x``. Mirroring twice at the same line is the identity. """
    return affinity.scale(geom, -1, 1, origin=(center_x, 0))


def geometry_bounds(geom):
    """ Exact :py:class:`.BoardBounds` of ``geom``, ``None`` if ``geom`` is empty. """
    if geom is None or geom.is_empty:
        return None
    return BoardBounds(*geom.bounds)


def to_path_d(geom):
    """ SVG path data of a merged polygon set (``M``/``L``/``Z`` only). """
    return gp.path_d(geom)
