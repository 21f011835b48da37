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

import re
import warnings
from enum import Enum

from .cam import ParsedLayer, FileSettings
from .graphic_objects import Flash
from .apertures import Aperture
from .utils import Inch, MM, RegexMatcher, UnknownStatementWarning

#: ``(integer, decimal)`` digits assumed for coordinates without decimal point, by unit.
DEFAULT_NUMBER_FORMATS = {Inch: (2, 4), MM: (3, 3)}


class ExcellonFile(ParsedLayer):
    """ Excellon drill file. Every drill hit becomes a :py:class:`.Flash` of a circular :py:class:`.Aperture` with the
    tool's diameter. :py:attr:`apertures` maps tool numbers to these apertures.
    """
    kind = 'excellon'

    @classmethod
    def from_string(kls, data, name=None, settings=None):
        """ Parse the given string as an Excellon file. ``name`` is used as layer name and in diagnostics. Pass
        ``settings`` to override the default inch/2.4 number format for files that do not specify their units. """
        parser = ExcellonParser(settings)
        parser.do_parse(data, filename=name)
        return kls(name=name, objects=parser.objects, apertures=parser.tools, comments=parser.comments,
                   import_settings=parser.settings)


class ProgramState(Enum):
    """ Internal helper class used to track Excellon program state (i.e. G05/G06 command state). """
    HEADER = 0
    DRILLING = 1
    FINISHED = 3


class ExcellonParser(object):
    """ Internal helper class that contains all the actual Excellon format parsing logic. """

    def __init__(self, settings=None):
        # Files without a unit statement are read as inch with 2.4 digit coordinates.
        self.settings = settings or FileSettings(unit=Inch, zeros='leading', number_format=DEFAULT_NUMBER_FORMATS[Inch])
        self.explicit_format = settings is not None
        self.program_state = None
        self.tools = {}
        self.objects = []
        self.active_tool = None
        self.pos = 0, 0
        self.comments = []
        self.lineno = None
        self.line = None
        self.filename = None

    def warn(self, msg, kls=SyntaxWarning):
        warnings.warn(f'{self.filename}:{self.lineno} "{self.line}": {msg}', kls)

    def do_parse(self, data, filename=None):
        # filename arg is for error messages
        self.filename = filename = filename or '<unknown>'

        for lineno, line in enumerate(data.splitlines(), start=1):
            line = line.strip()
            self.lineno, self.line = lineno, line # for warnings

            if not line:
                continue

            if self.program_state == ProgramState.FINISHED and not line.startswith(';'):
                self.warn('Commands found following end of program statement.')

            try:
                if not self.exprs.handle(self, line):
                    self.warn('Unknown excellon statement, ignoring.', UnknownStatementWarning)
            except ValueError as e:
                self.warn(f'{e}, ignoring statement.')

    exprs = RegexMatcher()

    coord = lambda name: fr'(?:{name}(?P<{name.lower()}>[+-]?[0-9]*\.?[0-9]*))?'
    xy_coord = coord('X') + coord('Y')

    # Hits may carry a tool selection before or after their coordinates. This has to come before the tool definition
    # rule, which would otherwise swallow "T1X...Y..." as a tool with X and Y parameters.
    @exprs.match(r'(?:T(?P<tool_before>[0-9]+))?(?=[XY])' + xy_coord + r'(?:T(?P<tool_after>[0-9]+))?')
    def handle_hit(self, match):
        if (tool := match['tool_before'] or match['tool_after']) is not None:
            self.select_tool(int(tool))

        if self.program_state == ProgramState.FINISHED:
            self.warn('Drill hit after end of program, ignoring.')
            return

        self.do_move(match['x'], match['y'])
        if self.active_tool is None:
            self.warn('Drill hit without a selected tool. Dropping hit.')
            return

        self.objects.append(Flash(*self.pos, self.active_tool))

    @exprs.match('T([0-9]+)(([A-Z][.0-9]+)+)') # Tool definition: T** with at least one parameter
    def parse_normal_tooldef(self, match):
        # We ignore parameters like feed rate or spindle speed that are not used for EDA -> CAM file transfer. This is
        # not a parser for the type of Excellon files a CAM program sends to the machine.

        if (index := int(match[1])) in self.tools:
            self.warn(f'Re-definition of tool index {index}, overwriting old definition.')

        params = { m[0]: m[1:] for m in re.findall('[BCFHSTZ][.0-9]+', match[2]) }
        if (diameter := self.settings.resolve(params.get('C'))) is None:
            self.warn(f'Tool T{index} definition without diameter, ignoring.')
            return

        self.tools[index] = Aperture.circle(diameter, original_number=index)

    @exprs.match('T([0-9]+)')
    def parse_tool_selection(self, match):
        self.select_tool(int(match[1]))

    def select_tool(self, index):
        if index == 0: # T0 unloads the current tool
            self.active_tool = None
        elif index not in self.tools:
            self.warn(f'Undefined tool index {index} selected. Hits will be dropped until the next tool change.')
            self.active_tool = None
        else:
            self.active_tool = self.tools[index]

    def do_move(self, x, y):
        x = self.settings.resolve(x)
        y = self.settings.resolve(y)

        if self.settings.is_absolute:
            if x is not None:
                self.pos = (x, self.pos[1])
            if y is not None:
                self.pos = (self.pos[0], y)
        else: # incremental
            if x is not None:
                self.pos = (self.pos[0]+x, self.pos[1])
            if y is not None:
                self.pos = (self.pos[0], self.pos[1]+y)

        return self.pos

    @exprs.match('M48')
    def handle_begin_header(self, match):
        if self.program_state not in (None, ProgramState.HEADER):
            self.warn(f'M48 "header start" statement found in the middle of the file, currently in {self.program_state}')
        self.program_state = ProgramState.HEADER

    @exprs.match('M95')
    def handle_end_header(self, match):
        if self.program_state != ProgramState.HEADER:
            self.warn('M95 end of header statement found outside of header')
        self.program_state = ProgramState.DRILLING

    @exprs.match('%')
    def handle_rewind_shorthand(self, match):
        if self.program_state is None:
            self.program_state = ProgramState.HEADER
        elif self.program_state is ProgramState.HEADER:
            self.program_state = ProgramState.DRILLING

    @exprs.match('M30|M00')
    def handle_end_of_program(self, match):
        if self.program_state in (None, ProgramState.HEADER):
            self.warn(f'{match[0]} statement found before end of header.')
        self.program_state = ProgramState.FINISHED

    @exprs.match('G05')
    def handle_drill_mode(self, match):
        self.program_state = ProgramState.DRILLING

    @exprs.match(r'(?:G0[0-3]|M1[567]).*')
    def handle_routing(self, match):
        self.warn('Routing commands are not supported, ignoring.')

    @exprs.match(r'(M71|METRIC|M72|INCH)(,LZ|,TZ)?(,0*\.0*)?')
    def parse_unit_format(self, match):
        metric = match[1] in ('METRIC', 'M71')
        unit = MM if metric else Inch
        self.settings.unit = unit

        if match[2]:
            self.settings.zeros = 'trailing' if match[2] == ',LZ' else 'leading'

        if match[3]:
            integer, _, fractional = match[3][1:].partition('.')
            self.settings.number_format = len(integer), len(fractional)
            self.explicit_format = True

        elif not self.explicit_format:
            self.settings.number_format = DEFAULT_NUMBER_FORMATS[unit]

    @exprs.match('G90')
    def handle_absolute_mode(self, match):
        self.settings.notation = 'absolute'

    @exprs.match('G91')
    def handle_relative_mode(self, match):
        self.settings.notation = 'incremental'

    @exprs.match('ICI,?(ON|OFF)')
    def handle_incremental_mode(self, match):
        self.settings.notation = 'absolute' if match[1] == 'OFF' else 'incremental'

    @exprs.match(r'(FMAT|VER),?([0-9]*)|DETECT,ON|ATC,ON|M06|G40|G41|G42|F[0-9]+')
    def handle_unhandled(self, match):
        pass

    @exprs.match(';(.*)')
    def parse_comment(self, match):
        self.comments.append(match[1].strip())
