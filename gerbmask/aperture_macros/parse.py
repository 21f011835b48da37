#!/usr/bin/env python
# -*- coding: utf-8 -*-

# Copyright 2021 Jan Sebastian Götte <gerbonara@jaseg.de>

from dataclasses import dataclass, field
import re
import warnings

import shapely

from . import primitive as ap
from .expression import ConstantExpression, parse_expression
from .. import graphic_primitives as gp


def _parse_expression(text):
    try:
        return parse_expression(text)
    except SyntaxError as e:
        warnings.warn(f'{e}. Using 0 instead.', SyntaxWarning)
        return ConstantExpression(0)


@dataclass(frozen=True, slots=True)
class VariableDefinition:
    """ ``$n=<expression>`` statement inside an aperture macro """
    number: int
    expression: object


@dataclass(frozen=True, slots=True)
class ApertureMacro:
    """ A named aperture macro template. ``statements`` holds primitives and variable definitions in declaration
    order. """
    name: str = None
    statements: tuple = ()
    comments: tuple = field(default=(), hash=False, compare=False)

    @classmethod
    def parse_macro(kls, macro_name, body):
        """ Parse the body of an ``%AM`` statement, i.e. everything after the macro name. """
        comments = []
        statements = []

        blocks = body.split('*')
        for block in blocks:
            if not (block := block.strip()): # empty block
                continue

            if block.startswith('0 ') or block == '0': # comment
                comments.append(block[2:])
                continue

            block = re.sub(r'\s', '', block)

            if block[0] == '$': # variable definition
                name, _, expr = block.partition('=')
                try:
                    number = int(name[1:])
                except ValueError:
                    warnings.warn(f'Invalid variable definition {block!r} in aperture macro {macro_name}, ignoring.',
                                  SyntaxWarning)
                    continue
                statements.append(VariableDefinition(number, _parse_expression(expr)))

            else: # primitive
                code, *args = block.split(',')
                try:
                    cls = ap.PRIMITIVE_CLASSES[int(code)]
                except (ValueError, KeyError):
                    warnings.warn(f'Unsupported primitive {code!r} in aperture macro {macro_name}, ignoring.',
                                  SyntaxWarning)
                    continue

                try:
                    statements.append(cls.from_arglist([_parse_expression(arg) for arg in args]))
                except ValueError as e:
                    warnings.warn(f'Invalid primitive {block!r} in aperture macro {macro_name}: {e}', SyntaxWarning)

        return kls(macro_name, tuple(statements), tuple(comments))

    @property
    def primitives(self):
        return tuple(stmt for stmt in self.statements if not isinstance(stmt, VariableDefinition))

    def __str__(self):
        return f'<Aperture macro {self.name}, {len(self.primitives)} primitives>'

    def __repr__(self):
        return str(self)

    def to_geometry(self, parameters=(), quad_segs=gp.CIRCLE_QUAD_SEGS):
        """ Instantiate this macro with the given parameters. Primitives are combined in declaration order starting
        from an empty shape: exposed primitives are added, unexposed ones are cut away.

        :param parameters: Values for ``$1``, ``$2``, ...
        :returns: shapely geometry in the macro's native unit, relative to the flash point.
        """
        variables = {number: float(value) for number, value in enumerate(parameters, start=1)}

        shape = gp.EMPTY
        for stmt in self.statements:
            if isinstance(stmt, VariableDefinition):
                variables[stmt.number] = ap.evaluate(stmt.expression, variables)
                continue

            geom, exposed = stmt.to_geometry(variables, quad_segs)
            if geom.is_empty:
                continue

            if exposed:
                shape = shapely.union(shape, geom)
            else:
                shape = shapely.difference(shape, geom)
        return gp.polygons(shape)
