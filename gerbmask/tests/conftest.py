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

import pytest

from .samples import *


@pytest.fixture()
def board_dir(tmp_path):
    """ Directory holding a minimal two layer board: profile, top copper and a drill file """
    (tmp_path / 'board-Edge_Cuts.gm1').write_text(OUTLINE)
    (tmp_path / 'board-F_Cu.gtl').write_text(TRACE)
    (tmp_path / 'board.drl').write_text(DRILL)
    return tmp_path


@pytest.fixture()
def write_file(tmp_path):
    def wrapper(name, content):
        path = tmp_path / name
        path.write_text(content)
        return path
    return wrapper
