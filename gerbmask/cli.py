#! /usr/bin/env python
# -*- coding: utf-8 -*-
#
# Copyright 2023 Jan Sebastian Götte <gerbonara@jaseg.de>
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

import sys
import json
import html
import warnings
from pathlib import Path

import click

from .cam import BoardBounds
from .utils import Tag, setup_svg, prec, LayerLoadError
from . import geometry as geo
from . import layers as lyr
from . import __version__


def _showwarning(message, category, filename, lineno, file=None, line=None):
    if file is None:
        file = sys.stderr

    filename = Path(filename)
    gerbmask_module_install_location = Path(__file__).parent.parent
    if filename.is_relative_to(gerbmask_module_install_location):
        filename = filename.relative_to(gerbmask_module_install_location)

    print(f'{filename}:{lineno}: {message}', file=file)
warnings.showwarning = _showwarning

def _print_version(ctx, param, value):
    if value and not ctx.resilient_parsing:
        click.echo(f'Version {__version__}')
        ctx.exit()


def _merge_options(fun):
    """ Options shared by all commands that run the merge engine """
    defaults = geo.MergeSettings()
    fun = click.option('--tolerance', type=float, default=defaults.flatten_tolerance, show_default=True,
                       help='Maximum deviation of flattened arcs from the true arc in mm')(fun)
    fun = click.option('--grid-size', type=float, default=defaults.grid_size, show_default=True,
                       help='Precision grid in mm that all boolean operations snap to')(fun)
    fun = click.option('--circle-segments', type=int, default=defaults.circle_quad_segs, show_default=True,
                       help='Segments per quarter circle used for round shapes')(fun)
    return fun


def _merge_settings(tolerance, grid_size, circle_segments):
    try:
        return geo.MergeSettings(flatten_tolerance=tolerance, grid_size=grid_size, circle_quad_segs=circle_segments)
    except ValueError as e:
        raise click.BadParameter(str(e))


def _load_stack(paths, format_warnings):
    with warnings.catch_warnings():
        warnings.simplefilter(format_warnings)
        try:
            return lyr.LayerStack.open(paths)
        except LayerLoadError as e:
            raise click.UsageError(str(e))


def _merge(layer, settings, format_warnings, show_progress=True):
    task = geo.MergeTask(layer, settings)
    with warnings.catch_warnings():
        warnings.simplefilter(format_warnings)
        if show_progress:
            with click.progressbar(task, length=task.total, label=f'Merging {layer.name}', file=sys.stderr) as bar:
                for _step in bar:
                    pass
        else:
            task.run()
    return task.result


@click.group()
@click.option('--version', is_flag=True, callback=_print_version, expose_value=False, is_eager=True)
def cli():
    """ The gerbmask CLI parses Gerber and Excellon files and exports their merged polygon outlines, e.g. for laser
    exposure masks. """
    pass


@cli.command()
@click.option('--warnings', 'format_warnings', type=click.Choice(['default', 'ignore', 'once']), default='default',
              help='''Enable or disable file format warnings during parsing (default: on)''')
@click.option('--version', is_flag=True, callback=_print_version, expose_value=False, is_eager=True)
@click.option('--merged/--raw', default=True, help='''Export fully merged polygons with clear polarity applied
              (default), or the raw primitive outlines, which is faster but overlaps are not resolved.''')
@click.option('--top', 'side', flag_value='top', help='Only export layers of the top side')
@click.option('--bottom', 'side', flag_value='bottom', help='Only export layers of the bottom side')
@click.option('--invert', is_flag=True, help='Export the negative of each layer inside the board outline (--merged only)')
@click.option('--invert-margin', type=float, default=1.0, show_default=True, help='''Space in mm added around the
              board outline for --invert''')
@click.option('--mirror-bottom', is_flag=True, help='Mirror bottom side layers at the board\'s vertical center line')
@click.option('--margin', type=float, default=0.0, help='Add space around the board inside the viewport')
@click.option('--progress/--no-progress', default=True, help='Show a progress bar while merging')
@_merge_options
@click.option('-o', '--output', 'outfile', type=click.File('w'), default='-', help='Output SVG file (default: stdout)')
@click.argument('inpaths', nargs=-1, required=True, type=click.Path(exists=True, path_type=Path))
def render(inpaths, outfile, format_warnings, merged, side, invert, invert_margin, mirror_bottom, margin, progress,
           tolerance, grid_size, circle_segments):
    """ Render Gerber and Excellon files, or directories of them, into an SVG file with one group per layer. """
    if invert and not merged:
        raise click.UsageError('--invert needs merged geometry and cannot be combined with --raw')

    settings = _merge_settings(tolerance, grid_size, circle_segments)
    stack = _load_stack(inpaths, format_warnings)
    layers = stack.side(side) if side else stack.sorted_layers()
    bounds = stack.board_bounds() or BoardBounds.default()
    center_x, _center_y = bounds.center

    tags = []
    for layer in layers:
        style = lyr.guess_layer_style(layer.name)
        mirrored = mirror_bottom and lyr.layer_side(layer.name) == 'bottom'
        attrs = {}

        if merged:
            geom = _merge(layer, settings, format_warnings, progress)
            if invert:
                geom = geo.invert(geom, bounds, invert_margin, settings.grid_size)
            if mirrored:
                geom = geo.mirror(geom, center_x)
            d = geo.to_path_d(geom)

        else:
            d = layer.to_path_d(settings.flatten_tolerance)
            if mirrored:
                attrs['transform'] = f'translate({prec(2*center_x)} 0) scale(-1 1)'

        path = Tag('path', d=d, fill=style.color, fill_rule='evenodd', fill_opacity=prec(style.opacity))
        tags.append(Tag('g', [path], id=html.escape(layer.name, quote=True), **attrs))

    extent = bounds.grown(invert_margin) if invert else bounds
    outfile.write(str(setup_svg(tags, extent.as_tuple(), margin=margin)))


@cli.command()
@click.option('--warnings', 'format_warnings', type=click.Choice(['default', 'ignore', 'once']), default='default',
              help='''Enable or disable file format warnings during parsing (default: on)''')
@click.option('--version', is_flag=True, callback=_print_version, expose_value=False, is_eager=True)
@click.option('--merged/--raw', default=True, help='Print merged polygon outlines (default) or raw primitive outlines')
@click.option('--profile', is_flag=True, help='Print the centerline path of all primitives instead of their outlines')
@click.option('--invert', is_flag=True, help='Print the negative of the layer inside its bounds (--merged only)')
@click.option('--invert-margin', type=float, default=1.0, show_default=True, help='Space in mm added for --invert')
@click.option('--mirror', is_flag=True, help='Mirror the layer at the vertical center line of its bounds')
@_merge_options
@click.argument('infile', type=click.Path(exists=True, dir_okay=False, path_type=Path))
def path(infile, format_warnings, merged, profile, invert, invert_margin, mirror, tolerance, grid_size,
         circle_segments):
    """ Print the SVG path data of a single Gerber or Excellon file in mm. """
    if invert and (profile or not merged):
        raise click.UsageError('--invert needs merged geometry and cannot be combined with --raw or --profile')

    settings = _merge_settings(tolerance, grid_size, circle_segments)
    layer = _load_stack([infile], format_warnings)[0]
    bounds = layer.bounds

    if profile:
        if mirror:
            raise click.UsageError('--mirror cannot be combined with --profile')
        click.echo(layer.profile_path_d())
        return

    if not merged:
        if mirror:
            raise click.UsageError('--mirror needs merged geometry and cannot be combined with --raw')
        click.echo(layer.to_path_d(settings.flatten_tolerance))
        return

    geom = _merge(layer, settings, format_warnings, show_progress=False)
    if invert:
        geom = geo.invert(geom, bounds, invert_margin, settings.grid_size)
    if mirror:
        geom = geo.mirror(geom, bounds.center[0])
    click.echo(geo.to_path_d(geom))


@cli.command()
@click.option('--warnings', 'format_warnings', type=click.Choice(['default', 'ignore', 'once']), default='default',
              help='''Enable or disable file format warnings during parsing (default: on)''')
@click.option('--version', is_flag=True, callback=_print_version, expose_value=False, is_eager=True)
@click.option('--exact', is_flag=True, help='''Compute layer bounds from merged polygons instead of the raw primitive
              estimate''')
@_merge_options
@click.argument('inpaths', nargs=-1, required=True, type=click.Path(exists=True, path_type=Path))
def bounds(inpaths, format_warnings, exact, tolerance, grid_size, circle_segments):
    """ Print the bounding boxes of all given layers and of the board as JSON. """
    settings = _merge_settings(tolerance, grid_size, circle_segments)
    stack = _load_stack(inpaths, format_warnings)

    out = {}
    for layer in stack:
        if exact:
            layer_bounds = geo.geometry_bounds(_merge(layer, settings, format_warnings, show_progress=False))
            layer_bounds = layer_bounds or BoardBounds.default()
        else:
            layer_bounds = layer.bounds

        out[layer.name] = {
                'kind': layer.kind,
                'side': lyr.layer_side(layer.name),
                'primitives': len(layer),
                'bounds': layer_bounds.to_dict()}

    board = stack.board_bounds()
    print(json.dumps({'layers': out, 'board': board.to_dict() if board else None}, indent=4))


if __name__ == '__main__':
    cli()
