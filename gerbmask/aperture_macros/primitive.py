#!/usr/bin/env python
# -*- coding: utf-8 -*-

# Copyright 2019 Hiroshi Murayama <opiopan@gmail.com>
# Copyright 2022 Jan Sebastian Götte <gerbonara@jaseg.de>

import warnings
from dataclasses import dataclass, fields

import shapely
from shapely import affinity

from .expression import Expression, ConstantExpression, expr

from .. import graphic_primitives as gp


def evaluate(expression, variable_binding):
    """ Calculate ``expression``. Expressions that cannot be evaluated, e.g. because of a division by zero, yield ``0``.
    """
    try:
        return expression.calculate(variable_binding)
    except ArithmeticError as e:
        warnings.warn(f'Cannot evaluate aperture macro expression {expression.to_gerber()}: {e}. Using 0 instead.',
                      SyntaxWarning)
        return 0.0


@dataclass(frozen=True, slots=True)
class Primitive:
    """ Base class for aperture macro primitives. All fields are :py:class:`.Expression` instances. Lengths are in the
    unit of the file the macro was defined in. Rotations are in degrees counter-clockwise around the macro origin. """

    def __post_init__(self):
        for field in fields(self):
            object.__setattr__(self, field.name, expr(getattr(self, field.name)))

    def __str__(self):
        attrs = ','.join(str(getattr(self, field.name)).strip('<>') for field in fields(self))
        return f'<{type(self).__name__} {attrs}>'

    def __repr__(self):
        return str(self)

    @classmethod
    def from_arglist(kls, arglist):
        # Missing trailing fields default to zero, surplus fields are ignored.
        num_fields = len(fields(kls))
        arglist = list(arglist[:num_fields])
        arglist += [ConstantExpression(0)] * (num_fields - len(arglist))
        return kls(*arglist)

    def exposed(self, variable_binding={}):
        """ ``True`` if this primitive adds to the macro's shape, ``False`` if it cuts it away. """
        return evaluate(self.exposure, variable_binding) != 0

    def to_geometry(self, variable_binding={}, quad_segs=gp.CIRCLE_QUAD_SEGS):
        """ Render this primitive into a shapely geometry using the given parameter binding.

        :returns: ``(geometry, exposure)``
        """
        with self.Calculator(self, variable_binding) as calc:
            shape = self._shape(calc, quad_segs)
            if calc.rotation:
                shape = affinity.rotate(shape, calc.rotation, origin=(0, 0))
        return shape, self.exposed(variable_binding)

    class Calculator:
        def __init__(self, instance, variable_binding={}):
            self.instance = instance
            self.variable_binding = variable_binding

        def __enter__(self):
            return self

        def __exit__(self, _type, _value, _traceback):
            pass

        def __getattr__(self, name):
            return evaluate(getattr(self.instance, name), self.variable_binding)

        def __call__(self, expr):
            return evaluate(expr, self.variable_binding)


@dataclass(frozen=True, slots=True)
class Circle(Primitive):
    code = 1
    exposure : Expression
    diameter : Expression
    # center x/y
    x : Expression = 0
    y : Expression = 0
    rotation : Expression = 0

    def _shape(self, calc, quad_segs):
        return gp.circle(calc.x, calc.y, calc.diameter/2, quad_segs)


@dataclass(frozen=True, slots=True)
class VectorLine(Primitive):
    code = 20
    exposure : Expression
    width : Expression
    start_x : Expression
    start_y : Expression
    end_x : Expression
    end_y : Expression
    rotation : Expression = 0

    def _shape(self, calc, quad_segs):
        return gp.stroke(calc.start_x, calc.start_y, calc.end_x, calc.end_y, calc.width, quad_segs)


@dataclass(frozen=True, slots=True)
class CenterLine(Primitive):
    code = 21
    exposure : Expression
    width : Expression
    height : Expression
    # center x/y
    x : Expression = 0
    y : Expression = 0
    rotation : Expression = 0

    def _shape(self, calc, quad_segs):
        return gp.rectangle(calc.x, calc.y, calc.width, calc.height)


@dataclass(frozen=True, slots=True)
class LowerLeftLine(Primitive):
    code = 22
    exposure : Expression
    width : Expression
    height : Expression
    # lower left corner x/y
    x : Expression = 0
    y : Expression = 0
    rotation : Expression = 0

    def _shape(self, calc, quad_segs):
        w, h = calc.width, calc.height
        return gp.rectangle(calc.x + w/2, calc.y + h/2, w, h)


@dataclass(frozen=True, slots=True)
class Polygon(Primitive):
    code = 5
    exposure : Expression
    n_vertices : Expression
    # center x/y
    x : Expression
    y : Expression
    diameter : Expression
    rotation : Expression = 0

    def _shape(self, calc, quad_segs):
        return gp.regular_polygon(calc.x, calc.y, calc.diameter, round(calc.n_vertices))


@dataclass(frozen=True, slots=True)
class Thermal(Primitive):
    code = 7
    # center x/y
    x : Expression
    y : Expression
    d_outer : Expression
    d_inner : Expression
    gap_w : Expression
    rotation : Expression = 0

    @property
    def exposure(self):
        return ConstantExpression(1)

    def _shape(self, calc, quad_segs):
        x, y, d_outer, gap = calc.x, calc.y, calc.d_outer, calc.gap_w
        ring = gp.circle(x, y, d_outer/2, quad_segs).difference(gp.circle(x, y, calc.d_inner/2, quad_segs))
        if gap <= 0:
            return ring

        bars = shapely.union(gp.rectangle(x, y, d_outer*2, gap), gp.rectangle(x, y, gap, d_outer*2))
        return ring.difference(bars)


@dataclass(frozen=True, slots=True)
class Outline(Primitive):
    code = 4
    exposure : Expression
    length : Expression
    coords : tuple
    rotation : Expression = 0

    def __post_init__(self):
        object.__setattr__(self, 'exposure', expr(self.exposure))
        object.__setattr__(self, 'length', expr(self.length))
        object.__setattr__(self, 'coords', tuple(expr(value) for value in self.coords))
        object.__setattr__(self, 'rotation', expr(self.rotation))

    @classmethod
    def from_arglist(kls, arglist):
        if len(arglist) < 2:
            raise ValueError('Outline primitive needs at least exposure and vertex count')

        exposure, length, *coords = arglist
        # The vertex list is followed by the rotation. With an odd number of remaining fields, the last one is it.
        rotation = coords.pop() if len(coords) % 2 == 1 else ConstantExpression(0)
        return kls(exposure, length, tuple(coords), rotation)

    def _shape(self, calc, quad_segs):
        values = [calc(coord) for coord in self.coords]
        return gp.outline(zip(values[0::2], values[1::2]))


PRIMITIVE_CLASSES = {
    **{cls.code: cls for cls in [
        Circle,
        VectorLine,
        CenterLine,
        LowerLeftLine,
        Polygon,
        Thermal,
        Outline,
    ]},
    # alternative name for 20
    2: VectorLine,
}
