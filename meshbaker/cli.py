"""
MeshBaker CLI - Command-line interface for baking scene manifests
"""

import logging
import sys
from pathlib import Path

import click
from pydantic import ValidationError

from meshbaker import __version__
from meshbaker.baker import MeshBaker, find_unique_sources
from meshbaker.channels import ChannelKind
from meshbaker.exceptions import BakeError
from meshbaker.scene import load_scene
from meshbaker.schema.settings import SUPPORTED_ATLAS_SIZES, BakeSettings
from meshbaker.store import FileAssetStore, MemoryAssetStore


@click.group()
@click.version_option(version=__version__)
def cli():
    """
    MeshBaker - Combine meshes and their textures into one mesh and one material.

    Examples:
        meshbaker bake scene.json
        meshbaker bake scene.json --atlas-size 4096 --ao --suffix 01
        meshbaker inspect scene.json
    """
    pass


@cli.command()
@click.argument('manifest')
@click.option('--root', default=None, help='Asset store root (default: the manifest folder)')
@click.option('--atlas-size', type=click.Choice([str(s) for s in SUPPORTED_ATLAS_SIZES]), default='2048', show_default=True, help='Side of every atlas in pixels')
@click.option('--normals/--no-normals', default=True, show_default=True, help='Bake a normal map atlas')
@click.option('--specular/--no-specular', default=True, show_default=True, help='Bake a specular/metallic atlas')
@click.option('--ao/--no-ao', default=False, show_default=True, help='Bake an ambient occlusion atlas')
@click.option('--folder', default='Baked', show_default=True, help='Output folder name under the root')
@click.option('--suffix', default='00', show_default=True, help='Suffix appended to every output file name')
@click.option('--save-mesh/--no-save-mesh', default=True, show_default=True, help='Write the combined mesh as a .glb')
@click.option('--specular-srgb', is_flag=True, help='Store specular/metallic atlases as sRGB (legacy)')
@click.option('--max-unique', default=4, show_default=True, type=int, help='Maximum number of unique meshes')
@click.option('--dry-run', is_flag=True, help='Bake in memory without writing files')
@click.option('--verbose', '-v', is_flag=True, help='Show bake progress')
def bake(manifest, root, atlas_size, normals, specular, ao, folder, suffix, save_mesh,
         specular_srgb, max_unique, dry_run, verbose):
    """
    Bake the objects of a scene manifest into one mesh and one material.

    Examples:
        meshbaker bake scene.json
        meshbaker bake scene.json --no-normals --folder Props --suffix 02
        meshbaker bake scene.json --dry-run -v
    """
    if verbose:
        logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(message)s")

    try:
        settings = BakeSettings(
            atlas_size=int(atlas_size),
            bake_normals=normals,
            bake_specular=specular,
            bake_ao=ao,
            output_folder=folder,
            suffix=suffix,
            save_mesh=save_mesh,
            specular_srgb=specular_srgb,
            max_unique_meshes=max_unique,
        )

        objects = load_scene(manifest)
        click.echo(f"Baking {len(objects)} objects from {manifest}")

        if dry_run:
            store = MemoryAssetStore()
        else:
            store = FileAssetStore(root if root is not None else Path(manifest).parent)

        result = MeshBaker(settings, store).bake(objects)

        for kind, handle in result.images.items():
            click.echo(f"  {kind.value:<8} {handle.path}")
        click.echo(f"  Material {result.material.path}")
        if result.mesh_handle is not None:
            click.echo(f"  Mesh     {result.mesh_handle.path}")

        if verbose:
            click.echo("\nBake Statistics:")
            click.echo(f"  Vertices: {result.mesh.vertex_count} ({result.mesh.index_format} indices)")
            click.echo(f"  Triangles: {len(result.mesh.faces)}")
            click.echo(f"  Unique meshes: {len(result.placements)}")

        done = "Dry run complete" if dry_run else "Success! Baked"
        click.secho(f"✓ {done} {len(result.atlases)} atlases", fg='green')

    except FileNotFoundError as e:
        click.secho(f"Error: {e}", fg='red', err=True)
        sys.exit(1)
    except BakeError as e:
        click.secho(f"Bake Error ({type(e).__name__}): {e}", fg='red', err=True)
        sys.exit(1)
    except ValidationError as e:
        click.secho(f"Invalid input: {e}", fg='red', err=True)
        sys.exit(1)
    except ValueError as e:
        click.secho(f"Error: {e}", fg='red', err=True)
        sys.exit(1)
    except Exception as e:
        click.secho(f"Unexpected error: {e}", fg='red', err=True)
        if verbose:
            import traceback
            traceback.print_exc()
        sys.exit(1)


@cli.command()
@click.argument('manifest')
def inspect(manifest):
    """
    List the objects, unique meshes and material channels of a manifest.

    Examples:
        meshbaker inspect scene.json
    """
    try:
        objects = load_scene(manifest)

        click.echo(f"Objects: {len(objects)}")
        for obj in objects:
            mesh = obj.mesh.name if obj.mesh is not None else '-'
            material = obj.material.name if obj.material is not None else '-'
            click.echo(f"  {obj.name}: mesh={mesh} material={material}")

        complete = [o for o in objects if o.mesh is not None and o.material is not None]
        uniques = find_unique_sources(complete)
        click.echo(f"Unique meshes: {len(uniques)}")
        for unique in uniques:
            channels = [k.value for k in ChannelKind if unique.material.image(k) is not None]
            click.echo(
                f"  {unique.mesh.name} ({unique.mesh.vertex_count} vertices) "
                f"material={unique.material.name} channels={','.join(channels) or '-'}"
            )

    except FileNotFoundError as e:
        click.secho(f"Error: {e}", fg='red', err=True)
        sys.exit(1)
    except ValidationError as e:
        click.secho(f"Invalid input: {e}", fg='red', err=True)
        sys.exit(1)
    except ValueError as e:
        click.secho(f"Error: {e}", fg='red', err=True)
        sys.exit(1)


def main():
    """Entry point for the CLI"""
    cli()


if __name__ == '__main__':
    main()
