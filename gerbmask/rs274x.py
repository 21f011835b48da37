#! /usr/bin/env python
# -*- coding: utf-8 -*-
#
# Modified from parser.py by Paulo Henrique Silva <ph.silva@gmail.com>
# Copyright 2014 Hamilton Kibbe <ham@hamiltonkib.be>
# Copyright 2019 Hiroshi Murayama <opiopan@gmail.com>
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
import math
import warnings
from dataclasses import dataclass, field, replace

from .cam import ParsedLayer, FileSettings
from .utils import MM, Inch, InterpMode, UnknownStatementWarning
from .aperture_macros.parse import ApertureMacro
from .apertures import Aperture
from . import graphic_objects as go


def points_close(a, b):
    return math.isclose(a[0], b[0], abs_tol=1e-9) and math.isclose(a[1], b[1], abs_tol=1e-9)


class GerberFile(ParsedLayer):
    """ A single parsed RS-274X Gerber file.

    :ivar objects: :py:class:`~.graphic_objects.Trace`, :py:class:`~.graphic_objects.Flash` and
                   :py:class:`~.graphic_objects.Region` objects in file order.
    :ivar comments: Contents of the ``G04`` comments in the file.
    """
    kind = 'gerber'

    @classmethod
    def from_string(kls, data, name=None):
        """ Parse given string as Gerber file content. ``name`` is used as layer name and in diagnostics. """
        obj = kls(name=name)
        GerberParser(obj).parse(data, filename=name)
        return obj


@dataclass(frozen=True, slots=True)
class GraphicsState:
    """ Gerber graphics state. Parser handlers never modify a state, they return an updated copy. """
    #: Coordinate format and unit
    settings : FileSettings = field(default_factory=FileSettings)
    interpolation_mode : InterpMode = InterpMode.LINEAR
    #: ``True`` after G74, ``False`` after G75
    single_quadrant : bool = False
    polarity_dark : bool = True
    #: Current point in mm
    point : tuple = (0.0, 0.0)
    #: Currently selected :py:class:`~.apertures.Aperture`, ``None`` if nothing (or something undefined) is selected.
    aperture : object = None
    #: Segments of the trace being drawn
    trace : tuple = ()
    #: Contours finished so far inside a G36/G37 block, ``None`` outside of region mode.
    region : tuple = None
    #: Polarity at the start of the current region
    region_polarity : bool = True
    #: Segments of the region contour being drawn
    contour : tuple = ()
    #: Last D01/D02/D03 operation, repeated by coordinate statements without an explicit operation code
    last_operation : str = None

    @property
    def region_active(self):
        return self.region is not None


class GerberParser:
    """ Internal class that contains all of the actual Gerber parsing magic. Each ``_parse_{name}`` handler takes the
    current :py:class:`.GraphicsState` and the statement's regex match and returns the new state along with the graphic
    objects the statement completed.
    """

    NUMBER = r"[\+-]?(?:\d+\.?\d*|\.\d+)"
    DECIMAL = r"[\+-]?\d+([.]?\d+)?"
    NAME = r"[a-zA-Z_$\.][a-zA-Z_$\.0-9+\-]*"

    STATEMENT_REGEXES = {
        'coord': fr"(G0?[123]|G74|G75|G54|G55)?(?:X({NUMBER}))?(?:Y({NUMBER}))?" \
            fr"(?:I({NUMBER}))?(?:J({NUMBER}))?(?:D0?([123]))?",
        'region_start': r'G36',
        'region_end': r'G37',
        'eof': r"(D02)?M0?[02]", # P-CAD 2006 files have a spurious D02 before M02 as in "D02M02"
        'aperture': r"(G54|G55)?D(?P<number>\d+)",
        'unit_mode': r"MO(?P<unit>(MM|IN))",
        'format_spec': r"FS(?P<zero>(L|T|D))?(?P<notation>(A|I))[NG0-9]*X(?P<x>[0-7][0-7])Y(?P<y>[0-7][0-7])[DM0-9]*",
        'load_polarity': r"LP(?P<polarity>(D|C))",
        'aperture_definition': fr"ADD(?P<number>\d+)(?P<shape>C|R|O|P|{NAME})(,(?P<modifiers>.*))?",
        'aperture_macro': fr"AM(?P<name>{NAME})\*(?P<macro>.*)",
        'step_repeat': fr'SR(?P<coords>X(?P<X>[0-9]+)Y(?P<Y>[0-9]+)I(?P<I>{DECIMAL})J(?P<J>{DECIMAL}))?',
        'old_unit':r'(?P<mode>G7[01])',
        'old_notation': r'(?P<mode>G9[01])',
        'ignored': r"(?P<stmt>M01|IPPOS|ICAS)",
        'attribute': r"(?P<type>TF|TA|TO|TD)(?P<name>[._$a-zA-Z][._$a-zA-Z0-9]*)?(,(?P<value>.*))?",
        'comment': r"G0?4(?P<comment>.*)",
        }

    def __init__(self, target):
        self.target = target
        self.aperture_map = {}
        self.aperture_macros = {}
        self.eof_found = False
        self.unit_found = False
        self.filename = None
        self.line = None
        self.lineno = 0

    def _shorten_line(self):
        line_joined = self.line.replace('\r', '').replace('\n', '\\n')
        if len(line_joined) > 80:
            return f'{line_joined[:20]}[...]{line_joined[-20:]}'
        else:
            return line_joined

    def warn(self, msg, kls=SyntaxWarning):
        warnings.warn(f'{self.filename}:{self.lineno} "{self._shorten_line()}": {msg}', kls)

    def _split_commands(self, data):
        # Ignore '%' signs within G04 commments because eagle likes to put completely broken file attributes inside G04
        # comments, and those contain % signs. Best of all, they're not even balanced.
        self.lineno = 1
        for match in re.finditer(r'G04.*?\*\s*|%.*?%\s*|[^*%]*\*\s*', data, re.DOTALL):
            cmd = match[0]
            newlines = cmd.count('\n')
            cmd = cmd.strip()

            if cmd.startswith('%'):
                # An extended command block can hold several statements. Macro definitions span the whole block.
                cmd = cmd.strip('%').strip()
                parts = [cmd.rstrip('*')] if cmd.startswith('AM') else cmd.split('*')
            else:
                parts = [cmd.rstrip('*')]

            for part in parts:
                if not part.startswith(('G04', 'G4', 'AM')):
                    part = re.sub(r'\s', '', part)
                if part := part.strip():
                    self.line = part
                    yield part
            self.lineno += newlines
        self.lineno = 0
        self.line = ''

    def parse(self, data, filename=None):
        # filename arg is for error messages
        self.filename = filename or '<unknown>'

        regex_cache = [ (re.compile(exp, re.DOTALL), getattr(self, f'_parse_{name}'))
                       for name, exp in self.STATEMENT_REGEXES.items() ]

        state = GraphicsState(settings=FileSettings(number_format=(2, 4)))
        for line in self._split_commands(data):
            for le_regex, fun in regex_cache:
                if (match := le_regex.fullmatch(line)):
                    try:
                        state, emitted = fun(state, match)
                    except (ValueError, ArithmeticError) as e:
                        self.warn(f'{e}, ignoring statement.')
                    else:
                        self.target.objects.extend(emitted)
                    break

            else:
                self.warn(f'Unknown statement found: "{self._shorten_line()}", ignoring.', UnknownStatementWarning)

        self.line = '<end of file>'
        state, emitted = self._flush_trace(state)
        self.target.objects.extend(emitted)

        if state.region_active:
            self.warn('File ends inside a G36/G37 region. Emitting unclosed region as-is.')
            contours = (*state.region, state.contour) if state.contour else state.region
            if contours:
                self.target.objects.append(go.Region(contours, polarity_dark=state.region_polarity, closed=False))

        if not self.eof_found:
            self.warn('File is missing mandatory M02 EOF marker. File may be truncated.')

        if not self.unit_found:
            self.warn('File does not contain a unit definition. Assuming millimeters.')

        self.target.apertures = self.aperture_map
        self.target.macros = self.aperture_macros
        self.target.import_settings = state.settings

    def _flush_trace(self, state):
        if not state.trace:
            return state, ()
        trace = go.Trace(state.trace, state.aperture, polarity_dark=state.polarity_dark)
        return replace(state, trace=()), (trace,)

    def _close_contour(self, state):
        if not state.contour:
            return state

        contour = state.contour
        if not points_close(contour[-1].p2, contour[0].p1):
            contour = (*contour, go.Line(*contour[-1].p2, *contour[0].p1))
        return replace(state, region=(*state.region, contour), contour=())

    def _target_point(self, state, x, y):
        px, py = state.point
        if state.settings.is_incremental:
            return px + (x or 0), py + (y or 0)
        return (px if x is None else x), (py if y is None else y)

    def _segment(self, state, start, end, i, j):
        """ Build the :py:class:`~.graphic_objects.Line` or :py:class:`~.graphic_objects.Arc` for a D01 from
        ``start`` to ``end``. Returns ``None`` for a single-quadrant arc of zero length. """
        if state.interpolation_mode == InterpMode.LINEAR:
            return go.Line(*start, *end)

        if i is None and j is None:
            self.warn('Linear segment implied during arc interpolation mode through D01 w/o I, J values')
            return go.Line(*start, *end)

        i, j = i or 0.0, j or 0.0
        clockwise = state.interpolation_mode == InterpMode.CIRCULAR_CW

        if not state.single_quadrant:
            return go.Arc(*start, *end, i, j, clockwise)

        if points_close(start, end):
            # In single-quadrant mode, an arc with identical start and end points is not rendered at all.
            return None

        # G74 I/J are unsigned. Pick the quarter-or-less arc whose end point fits the circle best.
        arcs = [go.Arc(*start, *end, si*abs(i), sj*abs(j), clockwise) for si in (1, -1) for sj in (1, -1)]
        candidates = [arc for arc in arcs if arc.sweep_angle() <= math.pi/2 + 1e-6] or arcs
        return min(candidates, key=lambda arc: arc.numeric_error())

    def _parse_coord(self, state, match):
        interp, x, y, i, j, op = match.groups() # faster than name-based group access
        has_coord = x or y or i or j

        if not interp:
            pass # performance hack, error out early before descending into if/else chain
        elif interp == 'G74':
            state = replace(state, single_quadrant=True)
        elif interp == 'G75':
            state = replace(state, single_quadrant=False)
        elif interp in ('G54', 'G55'):
            pass # ignore.
        else:
            mode = {'1': InterpMode.LINEAR, '2': InterpMode.CIRCULAR_CW, '3': InterpMode.CIRCULAR_CCW}[interp[-1]]
            state = replace(state, interpolation_mode=mode)

        if not op:
            if not has_coord:
                return state, ()

            if (op := state.last_operation) is None:
                self.warn('Coordinate statement without operation code and no previous D01 or D02. Treating as D02.')
                op = '2'

        settings = state.settings
        start = state.point
        end = self._target_point(state, settings.resolve(x), settings.resolve(y))
        if op != '3':
            # D03 is not modal
            state = replace(state, last_operation=op)

        if op == '1':
            segment = self._segment(state, start, end, settings.resolve(i), settings.resolve(j))
            state = replace(state, point=end)
            if segment is None:
                return state, ()

            if state.region_active:
                return replace(state, contour=(*state.contour, segment)), ()
            return replace(state, trace=(*state.trace, segment)), ()

        elif op == '2':
            state, emitted = self._flush_trace(state)
            if state.region_active:
                # Every D02 inside a region starts a new contour.
                state = self._close_contour(state)
            return replace(state, point=end), emitted

        else:
            if state.region_active:
                self.warn('D03 flash statement inside region, ignoring.')
                return replace(state, point=end), ()

            state, emitted = self._flush_trace(state)
            if state.aperture is None:
                self.warn('Flash without a defined aperture. Using default circular aperture.')
            flash = go.Flash(*end, state.aperture, polarity_dark=state.polarity_dark)
            return replace(state, point=end), (*emitted, flash)

    def _parse_aperture(self, state, match):
        number = int(match['number'])
        if number < 10:
            self.warn(f'Invalid aperture number {number}: Aperture number must be >= 10.')

        state, emitted = self._flush_trace(state)
        if (aperture := self.aperture_map.get(number)) is None:
            self.warn(f'Tried to access undefined aperture D{number}. Falling back to default aperture.')
        return replace(state, aperture=aperture), emitted

    def _parse_aperture_definition(self, state, match):
        number = int(match['number'])
        shape = match['shape']

        try:
            modifiers = [ float(val) for val in match['modifiers'].strip(' ,').split('X') ] if match['modifiers'] else []
        except ValueError:
            self.warn(f'Malformed parameter list for aperture D{number}. Using empty parameter list.')
            modifiers = []

        if shape not in ('C', 'R', 'O', 'P') and shape not in self.aperture_macros:
            self.warn(f'Aperture D{number} references undefined aperture macro "{shape}".')

        if number in self.aperture_map:
            self.warn(f'Re-definition of aperture D{number}. Overwriting previous definition.')

        self.aperture_map[number] = Aperture.from_definition(shape, tuple(modifiers), state.settings.unit,
                                                             original_number=number)
        return state, ()

    def _parse_aperture_macro(self, state, match):
        name = match['name']
        if name in self.aperture_macros:
            self.warn(f'Re-definition of aperture macro {name}. Overwriting previous definition.')

        with warnings.catch_warnings(record=True) as caught:
            warnings.simplefilter('always')
            macro = ApertureMacro.parse_macro(name, match['macro'])
        for w in caught:
            self.warn(str(w.message), w.category)

        self.aperture_macros[name] = macro
        return state, ()

    def _parse_format_spec(self, state, match):
        if match['x'] != match['y']:
            self.warn(f'FS specifies different coordinate formats for X and Y ({match["x"]} != {match["y"]}). Using X.')

        settings = replace(state.settings,
                zeros={'L': 'leading', 'T': 'trailing'}.get(match['zero'], 'leading'),
                notation=('incremental' if match['notation'] == 'I' else 'absolute'),
                number_format=(int(match['x'][0]), int(match['x'][1])))
        return replace(state, settings=settings), ()

    def _parse_unit_mode(self, state, match):
        if self.unit_found:
            self.warn('Re-definition of file units.')
        self.unit_found = True
        unit = MM if match['unit'] == 'MM' else Inch
        return replace(state, settings=replace(state.settings, unit=unit)), ()

    def _parse_load_polarity(self, state, match):
        state, emitted = self._flush_trace(state)
        return replace(state, polarity_dark=(match['polarity'] == 'D')), emitted

    def _parse_comment(self, state, match):
        self.target.comments.append(match['comment'].strip())
        return state, ()

    def _parse_region_start(self, state, _match):
        if state.region_active:
            self.warn('Region start command (G36) inside region, ignoring.')
            return state, ()

        state, emitted = self._flush_trace(state)
        return replace(state, region=(), contour=(), region_polarity=state.polarity_dark), emitted

    def _parse_region_end(self, state, _match):
        if not state.region_active:
            self.warn('Region end command (G37) outside of region, ignoring.')
            return state, ()

        state = self._close_contour(state)
        emitted = (go.Region(state.region, polarity_dark=state.region_polarity),) if state.region else ()
        return replace(state, region=None, contour=()), emitted

    def _parse_old_unit(self, state, match):
        self.unit_found = True
        unit = Inch if match['mode'] == 'G70' else MM
        self.warn(f'Deprecated {match["mode"]} unit mode statement found. This deprecated since 2012.', DeprecationWarning)
        return replace(state, settings=replace(state.settings, unit=unit)), ()

    def _parse_old_notation(self, state, match):
        notation = 'absolute' if match['mode'] == 'G90' else 'incremental'
        self.warn(f'Deprecated {match["mode"]} notation mode statement found. This deprecated since 2012.', DeprecationWarning)
        return replace(state, settings=replace(state.settings, notation=notation)), ()

    def _parse_step_repeat(self, state, match):
        if match['coords'] and (match['X'], match['Y']) != ('1', '1'):
            self.warn('Step and repeat blocks are not supported. Only the first copy is used.')
        return state, ()

    def _parse_eof(self, state, match):
        self.eof_found = True
        return state, ()

    def _parse_attribute(self, state, match):
        return state, ()

    def _parse_ignored(self, state, match):
        return state, ()
