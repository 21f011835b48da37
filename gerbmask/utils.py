#!/usr/bin/env python
# -*- coding: utf-8 -*-
#
# Copyright 2014 Hamilton Kibbe <ham@hamiltonkib.be>
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
gerbmask.utils
==============
**Gerber and Excellon file handling utilities**

Units, parser helpers, arc math and small SVG helpers shared by the parsers and the geometry engine.
"""

import re
import math
import textwrap
from enum import Enum


class UnknownStatementWarning(Warning):
    """ gerbmask found an unknown Gerber or Excellon statement and skipped it. """
    pass


class GeometryWarning(Warning):
    """ A primitive could not be converted into polygon form and was left out of the merged layer. """
    pass


class LayerLoadError(ValueError):
    """ The input could not be read as a Gerber or Excellon file at all. """
    pass


class RegexMatcher:
    """ Internal parsing helper """
    def __init__(self):
        self.mapping = {}

    def match(self, regex):
        def wrapper(fun):
            nonlocal self
            self.mapping[regex] = fun
            return fun
        return wrapper

    def handle(self, inst, line):
        for regex, handler in self.mapping.items():
            if (match := re.fullmatch(regex, line)):
                handler(inst, match)
                return True
        else:
            return False


class LengthUnit:
    """ Convenience length unit class. Parsers use it to convert native file coordinates into millimeters.

    Singleton, use only global instances ``utils.MM`` and ``utils.Inch``.
    """

    def __init__(self, name, shorthand, this_in_mm):
        self.name = name
        self.shorthand = shorthand
        self.factor = this_in_mm

    def convert_from(self, unit, value):
        """ Convert ``value`` from ``unit`` into this unit.

        :param unit: ``MM``, ``Inch`` or one of the strings ``"mm"`` or ``"inch"``
        :param float value:
        :rtype: float
        """

        if isinstance(unit, str):
            unit = to_unit(unit)

        if unit == self or unit is None or value is None:
            return value

        return value * unit.factor / self.factor

    def __call__(self, value, unit):
        """ Convenience alias for :py:meth:`.LengthUnit.convert_from` """
        return self.convert_from(unit, value)

    def __eq__(self, other):
        if isinstance(other, str):
            return other.lower() in (self.name, self.shorthand)
        else:
            return id(self) == id(other)

    def __hash__(self):
        return id(self)

    # This class is a singleton, we don't want copies around
    def __copy__(self):
        return self

    def __deepcopy__(self, memo):
        return self

    def __str__(self):
        return self.shorthand

    def __repr__(self):
        return f'<LengthUnit {self.name}>'


MILLIMETERS_PER_INCH = 25.4
Inch = LengthUnit('inch', 'in', MILLIMETERS_PER_INCH)
MM = LengthUnit('millimeter', 'mm', 1)
units = {'inch': Inch, 'in': Inch, 'mm': MM, None: None}

def _raise_error(*args, **kwargs):
    raise SystemError('LengthUnit is a singleton. Use gerbmask.utils.MM or gerbmask.utils.Inch.')
LengthUnit.__init__ = _raise_error

def to_unit(name):
    """ Convert string ``name`` into a registered length unit.

    :param str name: ``'mm'`` or ``'inch'``
    :returns: ``MM``, ``Inch`` or ``None``
    :rtype: :py:class:`.LengthUnit` or ``None``
    """

    if name is None:
        return None

    if isinstance(name, LengthUnit):
        return name

    if isinstance(name, str):
        name = name.lower()
        if name in units:
            return units[name]

    raise ValueError(f'Invalid unit {name!r}. Should be either "mm", "inch" or None for no unit.')


class InterpMode(Enum):
    """ Gerber interpolation mode. """
    #: straight line
    LINEAR = 0
    #: clockwise circular arc
    CIRCULAR_CW = 1
    #: counterclockwise circular arc
    CIRCULAR_CCW = 2


def rotate_point(x, y, angle, cx=0, cy=0):
    """ Rotate point (x,y) around (cx,cy) by ``angle`` radians clockwise. """

    return (cx + (x - cx) * math.cos(-angle) - (y - cy) * math.sin(-angle),
            cy + (x - cx) * math.sin(-angle) + (y - cy) * math.cos(-angle))


def min_none(a, b):
    """ Like the ``min(..)`` builtin, but if either value is ``None``, returns the other. """
    if a is None:
        return b
    if b is None:
        return a
    return min(a, b)


def max_none(a, b):
    """ Like the ``max(..)`` builtin, but if either value is ``None``, returns the other. """
    if a is None:
        return b
    if b is None:
        return a
    return max(a, b)


def sum_bounds(bounds, *, default=None):
    """ Add/union multiple bounding boxes.

    :param bounds: each arg is one bounding box in ``((min_x, min_y), (max_x, max_y))`` format

    :returns: ``((min_x, min_y), (max_x, max_y))``
    :rtype: tuple
    """

    bounds = iter(bounds)

    for (min_x, min_y), (max_x, max_y) in bounds:
        break
    else:
        return default

    for (min_x_2, min_y_2), (max_x_2, max_y_2) in bounds:
        min_x, min_y = min_none(min_x, min_x_2), min_none(min_y, min_y_2)
        max_x, max_y = max_none(max_x, max_x_2), max_none(max_y, max_y_2)

    return ((min_x, min_y), (max_x, max_y))


def point_bounds(points, margin=0):
    """ Bounding box of a sequence of ``(x, y)`` points, grown by ``margin`` on every side. Returns ``None`` for an
    empty sequence. """
    points = list(points)
    if not points:
        return None

    xs, ys = [x for x, _y in points], [y for _x, y in points]
    return (min(xs) - margin, min(ys) - margin), (max(xs) + margin, max(ys) + margin)


def sweep_angle(cx, cy, x1, y1, x2, y2, clockwise):
    """ Calculate absolute sweep angle of arc. This is always a positive number.

    Coincident start and end points denote a full circle.

    :returns: Angle in radian in the half-open interval ``(0, 2*math.pi]``
    :rtype: float
    """
    x1, y1 = x1-cx, y1-cy
    x2, y2 = x2-cx, y2-cy

    a1, a2 = math.atan2(y1, x1), math.atan2(y2, x2)
    if not clockwise:
        if a2 > a1:
            return a2 - a1
        else:
            return 2*math.pi - abs(a2 - a1)
    else:
        if a1 > a2:
            return a1 - a2
        else:
            return 2*math.pi - abs(a1 - a2)


def approximate_arc(cx, cy, x1, y1, x2, y2, clockwise, max_error=1e-2, clip_max_error=True):
    """ Flatten a circular arc into a polyline whose chords deviate at most ``max_error`` from the arc. Yields points
    including both the start and the end point. """
    r = math.dist((x1, y1), (cx, cy))

    if math.isclose(r, 0):
        yield (x1, y1)
        yield (x2, y2)
        return

    if clip_max_error:
        # 1 - math.sqrt(1 - 0.5*math.sqrt(2))
        max_error = min(max_error, r*0.4588038998538031)

    elif max_error >= r:
        yield (x1, y1)
        yield (x2, y2)
        return

    # see https://www.mathopenref.com/sagitta.html
    l = math.sqrt(r**2 - (r - max_error)**2)

    angle_max = math.asin(l/r)
    alpha = sweep_angle(cx, cy, x1, y1, x2, y2, clockwise)
    num_segments = math.ceil(alpha / angle_max)
    angle = alpha / num_segments

    if not clockwise:
        angle = -angle

    for i in range(num_segments):
        yield rotate_point(x1, y1, i*angle, cx, cy)
    # land exactly on the commanded end point even if it is slightly off the circle
    yield (x2, y2)


def prec(value):
    """ Format a coordinate for path data: fixed four decimals (0.1µm in mm), trailing zeros stripped. """
    out = f'{float(value):.4f}'.rstrip('0').rstrip('.')
    return '0' if out in ('-0', '', '-') else out


def svg_arc(old, new, center, clockwise):
    """ Format an SVG circular arc "A" path data entry given an arc in Gerber notation (i.e. with center relative to
    first point).

    The large arc flag is set iff the swept angle, normalized into ``(0, 2π]`` in the commanded direction, exceeds π.

    :rtype: str
    """
    r = math.hypot(*center)
    cx, cy = old[0] + center[0], old[1] + center[1]
    # Path data is in Gerber orientation (Y up), so the SVG sweep flag (1 = positive angle direction) is set for
    # counter-clockwise arcs.
    sweep_flag = int(not clockwise)
    alpha = sweep_angle(cx, cy, *old, *new, clockwise)

    # A full circle has to be split in two since SVG cannot express a closed arc.
    if math.isclose(math.dist(old, new), 0):
        intermediate = old[0] + 2*center[0], old[1] + 2*center[1]
        return f'A {prec(r)} {prec(r)} 0 0 {sweep_flag} {prec(intermediate[0])} {prec(intermediate[1])} ' +\
               f'A {prec(r)} {prec(r)} 0 0 {sweep_flag} {prec(new[0])} {prec(new[1])}'

    large_arc = int(alpha > math.pi)
    return f'A {prec(r)} {prec(r)} 0 {large_arc} {sweep_flag} {prec(new[0])} {prec(new[1])}'


def circle_path_d(x, y, r):
    """ SVG path data for a full circle as two half-circle arcs. """
    return (f'M {prec(x-r)} {prec(y)} A {prec(r)} {prec(r)} 0 1 0 {prec(x+r)} {prec(y)} '
            f'A {prec(r)} {prec(r)} 0 1 0 {prec(x-r)} {prec(y)} Z')


class Tag:
    """ Helper class to ease creation of SVG. """

    def __init__(self, name, children=None, root=False, **attrs):
        self.name, self.attrs = name, attrs
        self.children = children or []
        self.root = root

    def __str__(self):
        prefix = '<?xml version="1.0" encoding="utf-8"?>\n' if self.root else ''
        opening = ' '.join([self.name] + [f'{key.replace("__", ":").replace("_", "-")}="{value}"' for key, value in self.attrs.items()])
        if self.children:
            children = '\n'.join(textwrap.indent(str(c), '  ') for c in self.children)
            return f'{prefix}<{opening}>\n{children}\n</{self.name}>'
        else:
            return f'{prefix}<{opening}/>'


def setup_svg(tags, bounds, margin=0, tag=Tag):
    """ Wrap ``tags`` into an SVG document in millimeters covering ``bounds``. Content is expected in Gerber orientation
    (Y up) and is flipped into SVG orientation by a group transform. """
    (min_x, min_y), (max_x, max_y) = bounds

    if margin:
        min_x -= margin
        min_y -= margin
        max_x += margin
        max_y += margin

    w, h = max_x - min_x, max_y - min_y
    w = 1.0 if math.isclose(w, 0.0) else w
    h = 1.0 if math.isclose(h, 0.0) else h

    flipped = tag('g', tags, transform=f'translate(0 {prec(min_y + max_y)}) scale(1 -1)')
    return tag('svg', [flipped],
            width=f'{prec(w)}mm', height=f'{prec(h)}mm',
            viewBox=f'{prec(min_x)} {prec(min_y)} {prec(w)} {prec(h)}',
            xmlns="http://www.w3.org/2000/svg",
            root=True)
