# Copyright 2024 Michael Maillet, Damien Davison, Sacha Davison
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

"""
Command Line Interface for extdock.
"""
import logging

import click
from docker.errors import APIError
from dotenv import dotenv_values

from ..errors import InstallerError
from ..INSTALLER.docker_installer import DockerExtensionInstaller
from ..MODELS.image_descriptor import BindProperties, InstallOptions
from ..PARSERS.descriptor_parser import DescriptorParser
from ..settings import InstallerSettings


def _installer(ctx) -> DockerExtensionInstaller:
    """
    Connects on first use so that --help works without a daemon.
    """
    if 'installer' not in ctx.obj:
        ctx.obj['installer'] = DockerExtensionInstaller(ctx.obj['settings'])
    return ctx.obj['installer']


def _fail(ctx, error):
    click.echo(f"Error: {error}")
    ctx.exit(1)


@click.group()
@click.option('--socket', '-H', 'base_url', default=InstallerSettings().base_url,
              help='Docker daemon address')
@click.option('--bind-root', default=None, help='Host directory for bind files')
@click.option('--binds-path', default='', help='Sub-path below the bind root')
@click.option('--volume-container', default=None,
              help='Container whose volume is reused for bind files')
@click.option('--verbose', '-v', is_flag=True, help='Enable debug logging')
@click.pass_context
def cli(ctx, base_url, bind_root, binds_path, volume_container, verbose):
    """
    extdock - install and control extensions shipped as Docker images.
    """
    ctx.ensure_object(dict)
    logging.basicConfig(level=logging.DEBUG if verbose else logging.INFO,
                        format='%(levelname)s %(name)s: %(message)s')
    ctx.obj['settings'] = InstallerSettings(base_url=base_url)
    ctx.obj['bind_props'] = (BindProperties(root=bind_root, binds_path=binds_path,
                                            name=volume_container)
                             if bind_root else None)


@cli.command()
@click.argument('name', required=False)
@click.pass_context
def status(ctx, name):
    """Show the status of an extension, or the Docker version."""
    try:
        result = _installer(ctx).get_status(name)
    except (InstallerError, APIError) as e:
        _fail(ctx, e)
    click.echo(f"{'STATE':15} {'VERSION':15} {'TAG':15}")
    click.echo(f"{result.state or '-':15} {result.version or '-':15} {result.tag or '-':15}")


@cli.command()
@click.argument('manifest', type=click.Path(exists=True, dir_okay=False))
@click.option('--env', '-e', multiple=True, help='Environment variable NAME=VALUE')
@click.option('--env-file', type=click.Path(exists=True, dir_okay=False),
              help='Read environment variables from a .env file')
@click.option('--device', multiple=True, help='Host device to pass through')
@click.pass_context
def install(ctx, manifest, env, env_file, device):
    """Install the extension described by MANIFEST."""
    environment = {}
    if env_file:
        environment.update({k: v for k, v in dotenv_values(env_file).items() if v is not None})
    for item in env:
        if '=' not in item:
            _fail(ctx, f"Invalid --env value '{item}', expected NAME=VALUE")
        key, value = item.split('=', 1)
        environment[key] = value

    options = InstallOptions(env=environment, devices=list(device)) if environment or device else None

    try:
        image = DescriptorParser().parse(manifest)
        tag = _installer(ctx).install(image, ctx.obj['bind_props'], options)
    except (InstallerError, APIError, OSError, ValueError, KeyError) as e:
        _fail(ctx, e)
    click.echo(f"Installed {image.repo}:{tag}")


@cli.command()
@click.argument('name')
@click.pass_context
def update(ctx, name):
    """Re-pull and recreate the container of NAME."""
    try:
        tag = _installer(ctx).update(name)
    except (InstallerError, APIError) as e:
        _fail(ctx, e)
    click.echo(f"Updated {name} to {tag}")


@cli.command()
@click.argument('name')
@click.pass_context
def uninstall(ctx, name):
    """Remove the container and image of NAME."""
    try:
        _installer(ctx).uninstall(name)
    except (InstallerError, APIError) as e:
        _fail(ctx, e)
    click.echo(f"Uninstalled {name}")


@cli.command()
@click.argument('name', required=False)
@click.pass_context
def updates(ctx, name):
    """List installed extensions and their tags."""
    try:
        installs = _installer(ctx).query_updates(name)
    except (InstallerError, APIError) as e:
        _fail(ctx, e)
    click.echo(f"{'NAME':20} {'TAG':15}")
    click.echo("-" * 35)
    for install_name, tag in installs.items():
        click.echo(f"{install_name:20} {tag:15}")


def _lifecycle(ctx, action, name):
    try:
        state = getattr(_installer(ctx), action)(name)
    except (InstallerError, APIError) as e:
        _fail(ctx, e)
    click.echo(f"{name}: {state}")


@cli.command()
@click.argument('name')
@click.pass_context
def start(ctx, name):
    """Start the container of NAME."""
    _lifecycle(ctx, 'start', name)


@cli.command()
@click.argument('name')
@click.pass_context
def stop(ctx, name):
    """Stop the container of NAME."""
    _lifecycle(ctx, 'stop', name)


@cli.command()
@click.argument('name')
@click.pass_context
def terminate(ctx, name):
    """Stop a running container of NAME for good."""
    _lifecycle(ctx, 'terminate', name)


def main():
    """
    Main entry point for the CLI.
    """
    cli(obj={})

if __name__ == '__main__':
    main()
