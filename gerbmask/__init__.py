#!/usr/bin/env python
# -*- coding: utf-8 -*-
#
# Copyright 2022 Jan Sebastian Götte <code@jaseg.de>
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
gerbmask
========

gerbmask parses PCB artwork in Gerber/RS274-X and Excellon format and merges each layer into one polygon set with
correct polarity. The merged polygons can be inverted and mirrored for negative-mask (laser exposure) production.
"""

__version__ = '1.0.0'

from .rs274x import GerberFile
from .excellon import ExcellonFile
from .layers import LayerStack, load_layer, open_layer
from .geometry import MergeSettings, MergeTask, merge_layer
from .cam import BoardBounds, FileSettings
from .utils import MM, Inch
