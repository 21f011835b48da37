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
from enum import Enum
from dataclasses import dataclass, field, KW_ONLY

from shapely import affinity

from .utils import LengthUnit, MM
from . import graphic_primitives as gp

#: Line width used for interpolations with a missing or zero-width aperture, in mm.
DEFAULT_TRACE_WIDTH = 0.2
#: Size used for flashes whose aperture lacks a size parameter, in mm.
DEFAULT_FLASH_SIZE = 0.8
#: Diameter substituted for non-positive circle diameters, in mm.
MIN_CIRCLE_SIZE = 0.001
DEFAULT_POLYGON_VERTICES = 6


class ApertureKind(Enum):
    """ Standard aperture templates plus aperture macro references. The value is the Gerber shape code. """
    CIRCLE = 'C'
    RECT = 'R'
    ROUNDED_RECT = 'O'
    POLYGON = 'P'
    MACRO = 'M'

    @classmethod
    def from_code(kls, code):
        """ Map a shape code from an ``%AD`` statement to a kind. Everything that is not a standard template code
        refers to an aperture macro. """
        try:
            return kls(code)
        except ValueError:
            return kls.MACRO


#: Indices of the parameters of each standard template that are lengths and get converted to mm during parsing.
LENGTH_PARAMS = {
    ApertureKind.CIRCLE: (0, 1),
    ApertureKind.RECT: (0, 1, 2),
    ApertureKind.ROUNDED_RECT: (0, 1, 2),
    ApertureKind.POLYGON: (0, 3),
    ApertureKind.MACRO: (),
}

#: Index of the optional hole diameter parameter of each standard template
HOLE_PARAM = {
    ApertureKind.CIRCLE: 1,
    ApertureKind.RECT: 2,
    ApertureKind.ROUNDED_RECT: 2,
    ApertureKind.POLYGON: 3,
}


@dataclass(frozen=True, slots=True)
class Aperture:
    """ One aperture (or Excellon tool) definition. Flashes and traces reference their aperture by object, so all
    objects using the same D code share one instance.

    Length parameters of standard templates are stored in mm. Parameters of :py:attr:`ApertureKind.MACRO` apertures
    are handed to the macro verbatim, so :py:attr:`unit` records the file unit the macro has to be evaluated in.
    """
    kind : ApertureKind
    params : tuple = ()
    _ : KW_ONLY
    #: Macro name for :py:attr:`ApertureKind.MACRO` apertures
    macro : str = None
    #: Native unit of macro geometry
    unit : LengthUnit = MM
    original_number : int = field(default=None, hash=False, compare=False)

    @classmethod
    def from_definition(kls, shape, params, unit, original_number=None):
        """ Build an aperture from the shape code and raw parameter list of an ``%AD`` statement. Parameters are given
        in ``unit`` and are converted to mm here. """
        kind = ApertureKind.from_code(shape)
        params = tuple(MM(value, unit) if i in LENGTH_PARAMS[kind] else value for i, value in enumerate(params))
        return kls(kind, params, macro=(shape if kind == ApertureKind.MACRO else None), unit=unit,
                   original_number=original_number)

    @classmethod
    def circle(kls, diameter, original_number=None):
        return kls(ApertureKind.CIRCLE, (diameter,), original_number=original_number)

    def param(self, index, default=None):
        """ Positional parameter ``index``, or ``default`` if it is missing. Zero counts as missing, matching how
        CAM tools emit placeholder parameters. """
        if index < len(self.params) and self.params[index]:
            return self.params[index]
        return default

    @property
    def hole_diameter(self):
        if self.kind == ApertureKind.MACRO:
            return None
        return self.param(HOLE_PARAM[self.kind])

    def equivalent_width(self):
        """ Width of a line interpolated using this aperture in mm. """
        if self.kind == ApertureKind.MACRO:
            return DEFAULT_TRACE_WIDTH
        width = self.param(0, DEFAULT_TRACE_WIDTH)
        return width if width > 0 else DEFAULT_TRACE_WIDTH

    def dimensions(self):
        """ Return ``(w, h)`` of this aperture's standard template with all defaults applied. """
        match self.kind:
            case ApertureKind.CIRCLE:
                d = self.param(0, DEFAULT_FLASH_SIZE)
                d = d if d > 0 else MIN_CIRCLE_SIZE
                return d, d
            case ApertureKind.RECT | ApertureKind.ROUNDED_RECT:
                w = self.param(0, DEFAULT_FLASH_SIZE)
                return w, self.param(1, w)
            case ApertureKind.POLYGON:
                d = self.param(0, DEFAULT_FLASH_SIZE)
                return d, d
            case ApertureKind.MACRO:
                # Macro extents are only known after evaluation. Raw bounds treat them as a point.
                return 0, 0

    def bounding_box(self, x, y):
        """ Cheap bounding box of a flash of this aperture at ``(x, y)``. """
        w, h = self.dimensions()
        return (x - w/2, y - h/2), (x + w/2, y + h/2)

    def flash(self, x, y, macros=None, quad_segs=gp.CIRCLE_QUAD_SEGS):
        """ Render a flash of this aperture at ``(x, y)`` into a shapely geometry in mm.

        :param dict macros: Macro table of the layer, used for :py:attr:`ApertureKind.MACRO` apertures.
        :param int quad_segs: Circle approximation resolution.
        """
        match self.kind:
            case ApertureKind.CIRCLE:
                d, _d = self.dimensions()
                shape = gp.circle(x, y, d/2, quad_segs)
            case ApertureKind.RECT:
                shape = gp.rectangle(x, y, *self.dimensions())
            case ApertureKind.ROUNDED_RECT:
                shape = gp.rounded_rectangle(x, y, *self.dimensions(), quad_segs)
            case ApertureKind.POLYGON:
                d, _d = self.dimensions()
                n = self.param(1, DEFAULT_POLYGON_VERTICES)
                shape = gp.regular_polygon(x, y, d, n, self.param(2, 0))
            case ApertureKind.MACRO:
                return self._flash_macro(x, y, macros or {}, quad_segs)

        if (hole := self.hole_diameter):
            shape = shape.difference(gp.circle(x, y, hole/2, quad_segs))
        return shape

    def _flash_macro(self, x, y, macros, quad_segs):
        if self.macro not in macros:
            raise ValueError(f'Aperture macro {self.macro} is not defined')

        shape = macros[self.macro].to_geometry(self.params, quad_segs=quad_segs)
        if (factor := MM(1, self.unit)) != 1:
            shape = affinity.scale(shape, factor, factor, origin=(0, 0))
        return affinity.translate(shape, x, y)

    def __str__(self):
        name = self.macro if self.kind == ApertureKind.MACRO else self.kind.name.lower()
        number = f'D{self.original_number} ' if self.original_number is not None else ''
        params = ', '.join(f'{p:.4g}' if isinstance(p, float) else str(p) for p in self.params)
        return f'<{number}{name} aperture ({params})>'


#: Stand-in for flashes that reference an undefined aperture
DEFAULT_APERTURE = Aperture.circle(DEFAULT_FLASH_SIZE)
