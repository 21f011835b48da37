#!/usr/bin/env python
# -*- coding: utf-8 -*-

# Copyright 2021 Jan Sebastian Götte <gerbonara@jaseg.de>

""" Arithmetic expressions inside aperture macros, with a small tokenizer and recursive-descent parser.

Grammar::

    expression := term (('+' | '-') term)*
    term       := factor (('x' | 'X' | '*' | '/') factor)*
    factor     := ('+' | '-') factor | '(' expression ')' | number | '$' digits
"""

from dataclasses import dataclass
import operator
import re
import math


_TOKEN_RE = re.compile(r'\s*(?:(?P<number>[0-9]+\.?[0-9]*|\.[0-9]+)|\$(?P<param>[0-9]+)|(?P<op>[-+xX*/()]))')

_OPERATORS = {
    '+': operator.add,
    '-': operator.sub,
    'x': operator.mul,
    'X': operator.mul,
    '*': operator.mul,
    '/': operator.truediv,
}

_OPERATOR_SYMBOLS = {operator.add: '+', operator.sub: '-', operator.mul: 'x', operator.truediv: '/'}


def expr(obj):
    return obj if isinstance(obj, Expression) else ConstantExpression(obj)


@dataclass(frozen=True, slots=True)
class Expression:
    def __str__(self):
        return f'<{self.to_gerber()}>'

    def __repr__(self):
        return f'<E {self.to_gerber()}>'

    def calculate(self, variable_binding={}):
        """ Evaluate this expression under the given ``{number: value}`` parameter binding. Parameters that are not
        bound evaluate to ``0``. Arithmetic errors such as division by zero propagate. """
        raise NotImplementedError()


@dataclass(frozen=True, slots=True)
class ConstantExpression(Expression):
    value: float

    def __float__(self):
        return float(self.value)

    def __eq__(self, other):
        try:
            return math.isclose(self.value, float(other), abs_tol=1e-9)
        except TypeError:
            return False

    def calculate(self, variable_binding={}):
        return float(self.value)

    def to_gerber(self):
        if self == 0: # Avoid producing "-0" for negative floating point zeros
            return '0'
        return f'{self.value:.6f}'.rstrip('0').rstrip('.')


@dataclass(frozen=True, slots=True)
class ParameterExpression(Expression):
    ''' An expression that refers to a macro variable or parameter '''
    number: int

    def calculate(self, variable_binding={}):
        return float(variable_binding.get(self.number, 0.0))

    def to_gerber(self):
        return f'${self.number}'


@dataclass(frozen=True, slots=True)
class NegatedExpression(Expression):
    value: Expression

    def calculate(self, variable_binding={}):
        return -self.value.calculate(variable_binding)

    def to_gerber(self):
        val_str = self.value.to_gerber()
        if isinstance(self.value, OperatorExpression):
            return f'-({val_str})'
        return f'-{val_str}'


@dataclass(frozen=True, slots=True)
class OperatorExpression(Expression):
    op: object
    l: Expression
    r: Expression

    def calculate(self, variable_binding={}):
        return self.op(self.l.calculate(variable_binding), self.r.calculate(variable_binding))

    def to_gerber(self):
        lval = self.l.to_gerber()
        rval = self.r.to_gerber()

        if isinstance(self.l, OperatorExpression):
            lval = f'({lval})'
        if isinstance(self.r, OperatorExpression):
            rval = f'({rval})'

        return f'{lval}{_OPERATOR_SYMBOLS[self.op]}{rval}'


def tokenize(text):
    """ Split an aperture macro expression into ``(kind, value)`` tokens. ``kind`` is one of ``'number'``,
    ``'param'`` and ``'op'``. """
    tokens = []
    pos = 0
    text = text.rstrip()
    while pos < len(text):
        if not (match := _TOKEN_RE.match(text, pos)) or match.end() == pos:
            raise SyntaxError(f'Invalid character {text[pos]!r} in aperture macro expression {text!r}')

        kind = match.lastgroup
        tokens.append((kind, match[kind]))
        pos = match.end()
    return tokens


class _ExpressionParser:
    def __init__(self, text):
        self.text = text
        self.tokens = tokenize(text)
        self.pos = 0

    def peek(self):
        if self.pos < len(self.tokens):
            return self.tokens[self.pos]
        return None, None

    def take(self):
        token = self.peek()
        self.pos += 1
        return token

    def error(self, msg):
        return SyntaxError(f'Invalid aperture macro expression {self.text!r}: {msg}')

    def parse(self):
        if not self.tokens:
            raise self.error('empty expression')

        result = self.expression()
        if self.pos != len(self.tokens):
            raise self.error(f'unexpected {self.peek()[1]!r}')
        return result

    def expression(self):
        result = self.term()
        while self.peek() in (('op', '+'), ('op', '-')):
            _kind, op = self.take()
            result = OperatorExpression(_OPERATORS[op], result, self.term())
        return result

    def term(self):
        result = self.factor()
        while (token := self.peek())[0] == 'op' and token[1] in 'xX*/':
            _kind, op = self.take()
            result = OperatorExpression(_OPERATORS[op], result, self.factor())
        return result

    def factor(self):
        match self.take():
            case ('op', '+'):
                return self.factor()
            case ('op', '-'):
                return NegatedExpression(self.factor())
            case ('op', '('):
                result = self.expression()
                if self.take() != ('op', ')'):
                    raise self.error('missing closing parenthesis')
                return result
            case ('number', value):
                return ConstantExpression(float(value))
            case ('param', number):
                return ParameterExpression(int(number))
            case (None, None):
                raise self.error('unexpected end of expression')
            case (_kind, value):
                raise self.error(f'unexpected {value!r}')


def parse_expression(text):
    """ Parse an aperture macro expression such as ``$1x0.5+0.1`` into an :py:class:`.Expression` tree.

    :raises SyntaxError: if the expression is malformed.
    """
    return _ExpressionParser(text).parse()
