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

""" Small hand-written Gerber and Excellon files shared by the test modules """

TRACE = '''G04 single 10mm trace with a 1mm round aperture*
%FSLAX24Y24*%
%MOMM*%
%ADD10C,1.0*%
D10*
X0Y0D02*
X100000Y0D01*
M02*
'''

SQUARE_REGION = '''%FSLAX24Y24*%
%MOMM*%
G36*
X0Y0D02*
G01X100000Y0D01*
X100000Y100000D01*
X0Y100000D01*
X0Y0D01*
G37*
M02*
'''

REGION_WITH_CLEAR_FLASH = '''%FSLAX24Y24*%
%MOMM*%
%ADD10C,2.0*%
G36*
X0Y0D02*
G01X100000Y0D01*
X100000Y100000D01*
X0Y100000D01*
X0Y0D01*
G37*
%LPC*%
D10*
X50000Y50000D03*
M02*
'''

OUTLINE = '''%FSLAX24Y24*%
%MOMM*%
%ADD10C,0.1*%
D10*
X0Y0D02*
X500000Y0D01*
X500000Y300000D01*
X0Y300000D01*
X0Y0D01*
M02*
'''

DRILL = '''M48
METRIC
T1C1.0
%
T1
X5.0Y5.0
M30
'''
