#!/usr/bin/env python
# -*- coding: utf-8 -*-
#
# Copyright 2022 Jan Götte <code@jaseg.de>
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

""" Polygon building blocks. Every function here returns a shapely geometry in millimeters. Rotations are given in
degrees counter-clockwise, like in aperture macros. """

import math

import shapely
from shapely import affinity
from shapely.geometry import Point, LineString, Polygon, MultiPolygon
from shapely.geometry.polygon import orient

from .utils import prec

#: Segments per quarter circle used when approximating circles.
CIRCLE_QUAD_SEGS = 16

EMPTY = Polygon()


def circle(x, y, r, quad_segs=CIRCLE_QUAD_SEGS):
    if r <= 0:
        return EMPTY
    return Point(x, y).buffer(r, quad_segs=quad_segs)


def rectangle(x, y, w, h, rotation=0):
    """ Rectangle centered on ``(x, y)``, rotated around its center. """
    if w <= 0 or h <= 0:
        return EMPTY

    rect = shapely.box(x - w/2, y - h/2, x + w/2, y + h/2)
    return affinity.rotate(rect, rotation, origin=(x, y)) if rotation else rect


def rounded_rectangle(x, y, w, h, quad_segs=CIRCLE_QUAD_SEGS):
    """ Obround: a ``w`` by ``h`` rectangle whose short sides are half circles. """
    if w <= 0 or h <= 0:
        return EMPTY

    r = min(w, h) / 2
    if math.isclose(w, h):
        return circle(x, y, r, quad_segs)
    elif w > h:
        spine = LineString([(x - w/2 + r, y), (x + w/2 - r, y)])
    else:
        spine = LineString([(x, y - h/2 + r), (x, y + h/2 - r)])
    return spine.buffer(r, quad_segs=quad_segs)


def regular_polygon(x, y, diameter, n, rotation=0):
    """ Regular ``n``-gon on a circumscribed circle of ``diameter``. Without rotation, the first vertex lies on the
    positive X axis. """
    n = int(n)
    if diameter <= 0 or n < 3:
        return EMPTY

    r = diameter / 2
    rotation = math.radians(rotation)
    return Polygon([(x + r*math.cos(rotation + 2*math.pi*i/n), y + r*math.sin(rotation + 2*math.pi*i/n))
                    for i in range(n)])


def bar(x1, y1, x2, y2, width):
    """ Straight ``width``-wide band from ``(x1, y1)`` to ``(x2, y2)`` with flat ends. """
    length = math.dist((x1, y1), (x2, y2))
    if width <= 0 or math.isclose(length, 0):
        return EMPTY

    nx, ny = -(y2 - y1) / length * width/2, (x2 - x1) / length * width/2
    return Polygon([(x1 + nx, y1 + ny), (x2 + nx, y2 + ny), (x2 - nx, y2 - ny), (x1 - nx, y1 - ny)])


def stroke(x1, y1, x2, y2, width, quad_segs=CIRCLE_QUAD_SEGS):
    """ Straight line of ``width`` with round end caps. """
    if width <= 0:
        return EMPTY
    if math.isclose(math.dist((x1, y1), (x2, y2)), 0):
        return circle(x1, y1, width/2, quad_segs)
    return LineString([(x1, y1), (x2, y2)]).buffer(width/2, quad_segs=quad_segs)


def outline(points):
    """ Closed polygon through ``points``, repaired into a valid polygonal geometry. Returns the empty polygon for
    degenerate input. """
    points = list(points)
    if len(points) < 3:
        return EMPTY
    return polygons(shapely.make_valid(Polygon(points)))


def polygons(geom):
    """ Strip everything but polygonal parts from ``geom`` and return them as a :py:class:`~shapely.MultiPolygon`. """
    if geom is None or geom.is_empty:
        return MultiPolygon()

    match geom.geom_type:
        case 'Polygon':
            return MultiPolygon([geom])
        case 'MultiPolygon':
            return geom
        case 'GeometryCollection':
            return MultiPolygon([poly for part in geom.geoms for poly in polygons(part).geoms])
        case _:
            return MultiPolygon()


def _ring_path_d(coords):
    coords = list(coords)[:-1] # shapely rings repeat their first point
    if len(coords) < 3:
        return ''
    (x0, y0), *rest = coords
    return ' '.join([f'M {prec(x0)} {prec(y0)}', *(f'L {prec(x)} {prec(y)}' for x, y in rest), 'Z'])


def path_d(geom):
    """ SVG path data for all polygons in ``geom``. Exteriors are counter-clockwise, holes clockwise, so the result
    renders identically under the nonzero and evenodd fill rules. """
    out = []
    for poly in polygons(geom).geoms:
        poly = orient(poly, 1.0)
        out.append(_ring_path_d(poly.exterior.coords))
        out.extend(_ring_path_d(interior.coords) for interior in poly.interiors)
    return ' '.join(d for d in out if d)
