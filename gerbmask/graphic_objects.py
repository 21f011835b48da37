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
from dataclasses import dataclass, KW_ONLY

from .utils import approximate_arc, sweep_angle, point_bounds, prec, svg_arc, circle_path_d
from .apertures import ApertureKind, DEFAULT_APERTURE, DEFAULT_TRACE_WIDTH
from . import graphic_primitives as gp

#: Chordal tolerance in mm used when arcs are flattened for bounding boxes
BOUNDS_TOLERANCE = 0.01


@dataclass(frozen=True, slots=True)
class Line:
    """ Straight segment of a trace or region contour. All coordinates are in mm. """
    #: X coordinate of start point
    x1 : float
    #: Y coordinate of start point
    y1 : float
    #: X coordinate of end point
    x2 : float
    #: Y coordinate of end point
    y2 : float

    @property
    def p1(self):
        """ Convenience alias for ``(self.x1, self.y1)`` returning start point of the line. """
        return self.x1, self.y1

    @property
    def p2(self):
        """ Convenience alias for ``(self.x2, self.y2)`` returning end point of the line. """
        return self.x2, self.y2

    def approximate(self, max_error=1e-2):
        return [self.p1, self.p2]

    def path_d(self):
        return f'L {prec(self.x2)} {prec(self.y2)}'


@dataclass(frozen=True, slots=True)
class Arc:
    """ Like :py:class:`~.graphic_objects.Line`, but a circular arc. Has start ``(x1, y1)`` and end ``(x2, y2)``
    attributes like a :py:class:`~.graphic_objects.Line`, but additionally has a center ``(cx, cy)`` specified relative
    to the start point ``(x1, y1)``, as well as a ``clockwise`` attribute indicating the arc's direction. Coincident
    start and end points denote a full circle.
    """
    x1 : float
    y1 : float
    x2 : float
    y2 : float
    #: X coordinate of arc center relative to ``x1``
    cx : float
    #: Y coordinate of arc center relative to ``y1``
    cy : float
    #: Direction of arc. ``True`` means clockwise (G02).
    clockwise : bool

    @property
    def p1(self):
        return self.x1, self.y1

    @property
    def p2(self):
        return self.x2, self.y2

    @property
    def center(self):
        """ Returns the center of the arc in **absolute** coordinates. """
        return self.cx + self.x1, self.cy + self.y1

    @property
    def radius(self):
        return math.hypot(self.cx, self.cy)

    def numeric_error(self):
        """ Absolute difference between the start point radius and the end point radius. Gerber arcs are
        over-determined, so this is non-zero for arcs whose end point does not lie on the circle. """
        r1 = math.dist(self.center, self.p1)
        r2 = math.dist(self.center, self.p2)
        return abs(r1 - r2)

    def sweep_angle(self):
        """ Swept angle in radian in the commanded direction, in the half-open interval ``(0, 2*math.pi]`` """
        return sweep_angle(*self.center, self.x1, self.y1, self.x2, self.y2, self.clockwise)

    @property
    def large_arc(self):
        return self.sweep_angle() > math.pi

    def approximate(self, max_error=1e-2):
        """ Flatten this arc into a list of points including start and end point, such that no chord deviates more than
        ``max_error`` from the arc. """
        return list(approximate_arc(*self.center, self.x1, self.y1, self.x2, self.y2, self.clockwise,
                                    max_error=max_error))

    def path_d(self):
        return svg_arc(self.p1, self.p2, (self.cx, self.cy), self.clockwise)


def _flatten(segments, max_error):
    points = []
    for segment in segments:
        seg_points = segment.approximate(max_error)
        points.extend(seg_points[1:] if points else seg_points)
    return points


def _segments_path_d(segments, close=False):
    if not segments:
        return ''
    x0, y0 = segments[0].p1
    out = [f'M {prec(x0)} {prec(y0)}', *(segment.path_d() for segment in segments)]
    if close:
        out.append('Z')
    return ' '.join(out)


@dataclass(frozen=True, slots=True)
class Trace:
    """ A continuous run of D01 interpolations with one aperture, i.e. what happens when you drag an aperture along a
    polyline. Rendered with round end caps and round joins, using the aperture's width. """
    #: Tuple of :py:class:`~.graphic_objects.Line` and :py:class:`~.graphic_objects.Arc` segments. Each segment
    #: starts where the previous one ended.
    segments : tuple
    #: :py:class:`~.apertures.Aperture` or ``None`` if no aperture was selected
    aperture : object = None
    _ : KW_ONLY
    #: ``True`` for dark (adding) features, ``False`` for clear (erasing) ones.
    polarity_dark : bool = True

    @property
    def p1(self):
        return self.segments[0].p1

    @property
    def p2(self):
        return self.segments[-1].p2

    @property
    def width(self):
        return self.aperture.equivalent_width() if self.aperture else DEFAULT_TRACE_WIDTH

    def points(self, max_error=1e-2):
        """ Polyline of this trace with arcs flattened to ``max_error`` """
        return _flatten(self.segments, max_error)

    def bounding_box(self):
        return point_bounds(self.points(BOUNDS_TOLERANCE), self.width/2)

    def centerline_path_d(self):
        return _segments_path_d(self.segments)

    def outline_path_d(self, macros=None, max_error=1e-2):
        """ Cheap outline: a round cap at every vertex plus a rectangle for every segment. Overlaps are not resolved.
        """
        r = self.width/2
        points = self.points(max_error)
        out = [circle_path_d(x, y, r) for x, y in points]
        for p1, p2 in zip(points, points[1:]):
            if (bar := gp.bar(*p1, *p2, self.width)).is_empty:
                continue
            out.append(gp.path_d(bar))
        return ' '.join(out)


@dataclass(frozen=True, slots=True)
class Flash:
    """ A single aperture stamped at one point: Gerber D03 or an Excellon drill hit. """
    #: X coordinate of the flash point in mm
    x : float
    #: Y coordinate of the flash point in mm
    y : float
    #: :py:class:`~.apertures.Aperture` or ``None`` if the referenced aperture was undefined
    aperture : object = None
    _ : KW_ONLY
    polarity_dark : bool = True

    @property
    def resolved_aperture(self):
        """ The flashed aperture. Flashes of undefined apertures use a default circle. """
        return self.aperture or DEFAULT_APERTURE

    @property
    def tool(self):
        """ Alias for :py:attr:`aperture` for use inside an :py:class:`.ExcellonFile`. """
        return self.aperture

    def bounding_box(self):
        return self.resolved_aperture.bounding_box(self.x, self.y)

    def to_geometry(self, macros=None, quad_segs=gp.CIRCLE_QUAD_SEGS):
        return self.resolved_aperture.flash(self.x, self.y, macros, quad_segs)

    def centerline_path_d(self):
        return ''

    def outline_path_d(self, macros=None, max_error=1e-2):
        aperture = self.resolved_aperture
        if aperture.kind == ApertureKind.CIRCLE and not aperture.hole_diameter:
            d, _d = aperture.dimensions()
            return circle_path_d(self.x, self.y, d/2)
        return gp.path_d(self.to_geometry(macros))


@dataclass(frozen=True, slots=True)
class Region:
    """ Gerber "region", i.e. a filled area bounded by one or more contours made from lines and arcs. Region contours
    emitted on G37 are closed; a region cut off by the end of the file keeps its contours as drawn and has ``closed``
    set to ``False``. """
    #: Tuple of contours, each a tuple of :py:class:`~.graphic_objects.Line` and :py:class:`~.graphic_objects.Arc`
    #: segments.
    contours : tuple
    _ : KW_ONLY
    polarity_dark : bool = True
    closed : bool = True

    def points(self, max_error=1e-2):
        """ One flattened point list per contour """
        return [_flatten(contour, max_error) for contour in self.contours]

    def bounding_box(self):
        return point_bounds(point for contour in self.points(BOUNDS_TOLERANCE) for point in contour)

    def centerline_path_d(self):
        return ' '.join(_segments_path_d(contour, close=self.closed) for contour in self.contours if contour)

    def outline_path_d(self, macros=None, max_error=1e-2):
        return self.centerline_path_d()
