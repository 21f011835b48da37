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

from dataclasses import dataclass
from pathlib import Path

from .utils import LengthUnit, MM, Inch, sum_bounds


@dataclass
class FileSettings:
    ''' Coordinate format settings of one Gerber or Excellon file. This is the coordinate/unit resolver: it turns the
    numeric tokens found in a file into millimeters.

    .. note::
        Excellon and Gerber use opposite terminology for zero suppression. This class uses the Gerber convention, so an
        Excellon file in LZ (leading zeros kept) mode uses ``zeros='trailing'``.
    '''
    #: Coordinate notation. ``'absolute'`` or ``'incremental'``.
    notation : str = 'absolute'
    #: Native unit of the file. :py:attr:`~.utils.MM` or :py:attr:`~.utils.Inch`
    unit : LengthUnit = MM
    #: Zero suppression. ``'leading'``, ``'trailing'`` or ``None`` for unspecified (treated as leading).
    zeros : str = None
    #: ``(integer, decimal)`` digit counts. Digit-only tokens are divided by ``10**decimal``.
    number_format : tuple = (2, 4)

    # input validation
    def __setattr__(self, name, value):
        if name == 'unit' and value not in [MM, Inch]:
            raise ValueError(f'Unit must be either Inch or MM, not {value}')
        elif name == 'notation' and value not in ['absolute', 'incremental']:
            raise ValueError(f'Notation must be either "absolute" or "incremental", not {value}')
        elif name == 'zeros' and value not in [None, 'leading', 'trailing']:
            raise ValueError(f'zeros must be either "leading" or "trailing" or None, not {value}')
        elif name == 'number_format':
            if len(value) != 2:
                raise ValueError(f'Number format must be a (integer, fractional) tuple of integers, not {value}')

            if value[1] is None:
                raise ValueError('Number format must specify the number of decimal places')

        super().__setattr__(name, value)

    @property
    def is_incremental(self):
        return self.notation == 'incremental'

    @property
    def is_absolute(self):
        return not self.is_incremental # default to absolute

    @property
    def divisor(self):
        return 10 ** self.number_format[1]

    def __str__(self):
        notation = f'notation={self.notation} ' if self.notation != 'absolute' else ''
        return f'<File settings: unit={self.unit} {notation}zeros={self.zeros} number_format={self.number_format}>'

    def parse_gerber_value(self, value):
        """ Parse a numeric token in this file's native unit. Returns ``None`` for a missing or empty token, so that an
        explicit zero stays distinguishable from "unspecified". """
        if not value:
            return None

        sign = -1 if value.startswith('-') else 1
        value = value.lstrip('+-')
        if not value:
            return None

        if '.' in value:
            return sign * float(value)

        integer_digits, decimal_digits = self.number_format
        if self.zeros == 'trailing' and integer_digits:
            value = value.ljust(integer_digits + decimal_digits, '0')
            return sign * float(value[:-decimal_digits] + '.' + value[-decimal_digits:]) if decimal_digits else \
                   sign * float(value)

        return sign * int(value) / self.divisor

    def to_mm(self, value):
        """ Convert a value given in this file's native unit to millimeters. """
        return MM(value, self.unit)

    def resolve(self, value):
        """ Parse a numeric token and return it in millimeters, or ``None`` if the token is missing. """
        return self.to_mm(self.parse_gerber_value(value))


@dataclass(frozen=True)
class BoardBounds:
    """ Axis-aligned bounding rectangle in millimeters. """
    min_x : float
    min_y : float
    max_x : float
    max_y : float

    @classmethod
    def from_tuple(kls, bbox):
        (min_x, min_y), (max_x, max_y) = bbox
        return kls(min_x, min_y, max_x, max_y)

    @classmethod
    def default(kls):
        """ Bounds reported for a layer without any content. """
        return kls(0.0, 0.0, 100.0, 100.0)

    @property
    def width(self):
        return self.max_x - self.min_x

    @property
    def height(self):
        return self.max_y - self.min_y

    @property
    def center(self):
        return (self.min_x + self.max_x) / 2, (self.min_y + self.max_y) / 2

    def as_tuple(self):
        return (self.min_x, self.min_y), (self.max_x, self.max_y)

    def union(self, other):
        return BoardBounds.from_tuple(sum_bounds((self.as_tuple(), other.as_tuple())))

    def grown(self, margin):
        return BoardBounds(self.min_x - margin, self.min_y - margin, self.max_x + margin, self.max_y + margin)

    def to_dict(self):
        return {'minX': self.min_x, 'minY': self.min_y, 'maxX': self.max_x, 'maxY': self.max_y,
                'width': self.width, 'height': self.height}


class ParsedLayer:
    """ Base class for one parsed input file.

    :ivar name: Layer name, usually the file name. Used for layer side and style guessing.
    :ivar objects: Primitives in file order. Each is a :py:class:`~.graphic_objects.Trace`,
                   :py:class:`~.graphic_objects.Flash` or :py:class:`~.graphic_objects.Region`.
    :ivar apertures: ``dict`` mapping aperture (or tool) codes to :py:class:`~.apertures.Aperture` instances.
    :ivar macros: ``dict`` mapping macro names to :py:class:`~.aperture_macros.parse.ApertureMacro` instances.
    :ivar comments: Comments found in the file.
    :ivar import_settings: :py:class:`.FileSettings` in effect at the end of the file.
    """

    #: ``'gerber'`` or ``'excellon'``
    kind = None

    def __init__(self, name=None, objects=None, apertures=None, macros=None, comments=None, import_settings=None):
        self.name = name
        self.objects = objects or []
        self.apertures = apertures or {}
        self.macros = macros or {}
        self.comments = comments or []
        self.import_settings = import_settings
        # everything is converted to millimeters during parsing
        self.unit = MM

    @classmethod
    def open(kls, filename):
        """ Load a file from the file system. The file name is used as the layer name.

        :param filename: str or :py:class:`pathlib.Path`
        """
        filename = Path(filename)
        return kls.from_string(filename.read_text(encoding='utf-8', errors='replace'), name=filename.name)

    @classmethod
    def from_string(kls, data, name=None):
        raise NotImplementedError()

    def bounding_box(self, default=None):
        """ Cheap bounding box estimate computed from the raw primitives.

        :returns: ``((min_x, min_y), (max_x, max_y))`` in mm or ``default`` if the layer is empty.
        """
        return sum_bounds((bbox for obj in self.objects if (bbox := obj.bounding_box()) is not None),
                          default=default)

    @property
    def bounds(self):
        """ :py:class:`.BoardBounds` of the raw primitives. Empty layers report a 100mm by 100mm default. """
        bbox = self.bounding_box()
        return BoardBounds.default() if bbox is None else BoardBounds.from_tuple(bbox)

    def to_path_d(self, max_error=1e-2):
        """ Raw primitive-level path data: trace outlines, flash outlines and region contours. Overlaps are not merged
        and clear polarity is not applied. For exact output, use :py:func:`.geometry.merge_layer`. """
        return ' '.join(d for obj in self.objects if (d := obj.outline_path_d(self.macros, max_error)))

    def profile_path_d(self):
        """ Centerline path data of all primitives, without aperture widths. """
        return ' '.join(d for obj in self.objects if (d := obj.centerline_path_d()))

    @property
    def is_empty(self):
        return not self.objects

    def __len__(self):
        return len(self.objects)

    def __bool__(self):
        return not self.is_empty

    def __str__(self):
        name = f' {self.name}' if self.name else ''
        return f'<{type(self).__name__}{name} with {len(self.apertures)} apertures, {len(self.objects)} objects>'

    def __repr__(self):
        return str(self)
