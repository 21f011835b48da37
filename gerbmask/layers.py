#! /usr/bin/env python
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

from dataclasses import dataclass
from pathlib import Path

from .excellon import ExcellonFile
from .rs274x import GerberFile
from .cam import BoardBounds
from .utils import sum_bounds, LayerLoadError


DRILL_EXTENSIONS = ('.drl', '.xln', '.drd')

#: Substrings of a layer name marking the board profile layer
OUTLINE_KEYWORDS = ('profile', 'outline', 'edge', 'gm1', 'gko')

TOP_MARKERS = ('.gtl', '.gto', '.gts', '.gtp')
TOP_KICAD_MARKERS = ('f.cu', 'f.silk', 'f.mask', 'f.paste')
BOTTOM_MARKERS = ('.gbl', '.gbo', '.gbs', '.gbp')
BOTTOM_KICAD_MARKERS = ('b.cu', 'b.silk', 'b.mask', 'b.paste')


@dataclass(frozen=True)
class LayerStyle:
    """ Display defaults for a layer, guessed from its file name. """
    color : str
    #: Stacking order. Layers with higher order are drawn on top.
    order : int
    opacity : float = 0.9
    kind : str = 'other'


#: ``(kind, name substrings, style)`` rules, checked in order. The first rule with a matching substring wins.
STYLE_RULES = [
    ('drill', ('.drl', '.xln', 'drill', '.drd'), LayerStyle('#ffffff', 100, 0.9, 'drill')),
    ('outline', OUTLINE_KEYWORDS, LayerStyle('#e67e22', 90, kind='outline')),
    ('paste', ('paste', 'gtp', 'gbp', 'stencil'), LayerStyle('#f1c40f', 60, 0.8, 'paste')),
    ('mask', ('mask', 'gts', 'gbs'), LayerStyle('#27ae60', 50, 0.5, 'mask')),
    ('silk', ('silk', 'gto', 'gbo', 'legend'), LayerStyle('#ecf0f1', 80, kind='silk')),
    ('copper', ('top', 'f.cu', 'gtl', 'front'), LayerStyle('#c0392b', 10, 0.9, 'copper')),
    ('copper', ('bottom', 'b.cu', 'gbl', 'back'), LayerStyle('#2980b9', 10, 0.9, 'copper')),
]

BOTTOM_SILK_STYLE = LayerStyle('#bdc3c7', 80, kind='silk')
DEFAULT_STYLE = LayerStyle('#95a5a6', 5)


def identify_file(data, filename=None):
    """ Identify file type from file contents and name. Returns either of the string constants ``'excellon'`` or
    ``'gerber'``.

    :param data: Contents of file as :py:obj:`str`
    :param filename: Optional file name. Drill file extensions force Excellon.
    :rtype: :py:obj:`str`
    """

    if 'M48' in data:
        return 'excellon'

    if 'T0' in data and '%AD' not in data:
        return 'excellon'

    if filename and str(filename).lower().endswith(DRILL_EXTENSIONS):
        return 'excellon'

    return 'gerber'


def _decode(data, name):
    if isinstance(data, bytes):
        try:
            data = data.decode('utf-8')
        except UnicodeDecodeError as e:
            raise LayerLoadError(f'{name}: File is neither a Gerber nor an Excellon file (not valid text)') from e

    if '\0' in data:
        raise LayerLoadError(f'{name}: File is neither a Gerber nor an Excellon file (contains binary data)')
    return data


def load_layer(data, name=None):
    """ Parse one layer from its contents, auto-detecting the file type.

    :param data: File contents as :py:obj:`str` or :py:obj:`bytes`
    :param name: Layer name, usually the file name.
    :raises LayerLoadError: if the data is not text at all.
    :rtype: :py:class:`.GerberFile` or :py:class:`.ExcellonFile`
    """
    data = _decode(data, name or '<unknown>')
    if identify_file(data, name) == 'excellon':
        return ExcellonFile.from_string(data, name=name)
    return GerberFile.from_string(data, name=name)


def open_layer(path):
    """ Load one layer from the file system. The file name becomes the layer name. """
    path = Path(path)
    return load_layer(path.read_bytes(), name=path.name)


def layer_side(name):
    """ Guess which board side a layer belongs to from its name.

    :returns: ``'top'``, ``'bottom'`` or ``'both'``
    """
    lower = name.lower()

    if lower.endswith(TOP_MARKERS) or any(marker in lower for marker in TOP_KICAD_MARKERS):
        return 'top'

    if lower.endswith(BOTTOM_MARKERS) or any(marker in lower for marker in BOTTOM_KICAD_MARKERS):
        return 'bottom'

    is_top = 'top' in lower or 'front' in lower
    is_bottom = 'bottom' in lower or 'back' in lower

    if is_top and not is_bottom:
        return 'top'
    if is_bottom and not is_top:
        return 'bottom'
    return 'both'


def guess_layer_style(name):
    """ Guess display color, opacity and stacking order of a layer from its name. """
    lower = name.lower()

    for kind, keywords, style in STYLE_RULES:
        if any(keyword in lower for keyword in keywords):
            if kind == 'silk' and any(marker in lower for marker in ('bottom', 'b.', 'back', 'gbo')):
                return BOTTOM_SILK_STYLE
            return style

    return DEFAULT_STYLE


def is_outline(name):
    lower = name.lower()
    return any(keyword in lower for keyword in OUTLINE_KEYWORDS)


class LayerStack:
    """ :py:class:`LayerStack` represents a set of Gerber and Excellon files that describe different layers of the same
    board.

    :ivar layers: :py:obj:`list` of :py:class:`.GerberFile` and :py:class:`.ExcellonFile` in load order.
    """

    def __init__(self, layers=None):
        self.layers = list(layers or [])

    @classmethod
    def open(kls, paths):
        """ Load a board from the given files. Directories are expanded into the files they contain. """
        files = []
        for path in map(Path, paths):
            if path.is_dir():
                files.extend(sorted(p for p in path.iterdir() if p.is_file()))
            else:
                files.append(path)
        return kls([open_layer(path) for path in files])

    @classmethod
    def from_files(kls, files):
        """ Build a stack from a ``{name: contents}`` mapping. """
        return kls([load_layer(data, name=name) for name, data in files.items()])

    def __len__(self):
        return len(self.layers)

    def __iter__(self):
        return iter(self.layers)

    def __getitem__(self, index):
        return self.layers[index]

    def __str__(self):
        return f'<LayerStack with {len(self.layers)} layers>'

    def __repr__(self):
        return str(self)

    @property
    def outline(self):
        """ Return this board's profile layer if available, or :py:obj:`None`. """
        for layer in self.layers:
            if layer.name and is_outline(layer.name):
                return layer
        return None

    def sorted_layers(self):
        """ Layers in drawing order, bottom-most first. """
        return sorted(self.layers, key=lambda layer: guess_layer_style(layer.name or '').order)

    def side(self, side):
        """ Layers that belong to ``side`` (``'top'`` or ``'bottom'``), including layers used on both sides. """
        return [layer for layer in self.sorted_layers() if layer_side(layer.name or '') in (side, 'both')]

    @property
    def top_side(self):
        return self.side('top')

    @property
    def bottom_side(self):
        return self.side('bottom')

    def bounding_box(self, default=None):
        """ Calculate and return the bounding box of this layer stack. This bounding box will include all graphical
        objects on all layers and drill files. Consider using :py:meth:`~.layers.LayerStack.board_bounds` instead if you
        are interested in the actual board's bounding box.

        :returns: ``((x_min, y_min), (x_max, y_max))`` tuple of floats in mm.
        """
        return sum_bounds((bbox for layer in self.layers if (bbox := layer.bounding_box()) is not None),
                          default=default)

    def board_bounds(self):
        """ :py:class:`.BoardBounds` of this board's profile layer. If there is no profile layer, fall back to the
        bounds of all objects on all layers. Returns :py:obj:`None` for a board without any content. """
        if (outline := self.outline) is not None and not outline.is_empty:
            return outline.bounds

        if (bbox := self.bounding_box()) is None:
            return None
        return BoardBounds.from_tuple(bbox)
