from __future__ import annotations

import logging

import click

from formstream.boundary import generate_boundary, is_valid_boundary
from formstream.errors import (
    CopyFailedError,
    InputUnreadableError,
    MultipartWriteError,
    OutputUnwritableError,
)
from formstream.multipart import (
    DEFAULT_CHUNK_SIZE,
    multipart_content_type,
    write_multipart_body,
)

EXIT_CODES: dict[type[MultipartWriteError], int] = {
    InputUnreadableError: 3,
    OutputUnwritableError: 4,
    CopyFailedError: 5,
}


def _parse_field(ctx, param, values: tuple[str, ...]) -> list[tuple[str, str]]:
    fields: list[tuple[str, str]] = []
    for item in values:
        name, sep, value = item.partition("=")
        if not sep or not name:
            raise click.BadParameter(f"expected KEY=VALUE, got {item!r}", ctx=ctx, param=param)
        fields.append((name, value))
    return fields


def _check_boundary(ctx, param, value: str | None) -> str | None:
    if value is not None and not is_valid_boundary(value):
        raise click.BadParameter(f"invalid multipart boundary {value!r}", ctx=ctx, param=param)
    return value


@click.command()
@click.argument("input_file", type=click.Path(dir_okay=False))
@click.argument("output_file", type=click.Path(dir_okay=False))
@click.option("--name", "field_name", required=True, help="Form field name of the file part.")
@click.option("--filename", default=None, help="Filename announced for the file (default: input base name).")
@click.option("--mime-type", default=None, help="Content-Type of the file part (default: guessed).")
@click.option(
    "--field",
    "fields",
    multiple=True,
    callback=_parse_field,
    metavar="KEY=VALUE",
    help="Additional text field; repeatable, written in order.",
)
@click.option("--boundary", default=None, callback=_check_boundary, help="Boundary to use (default: random).")
@click.option(
    "--chunk-size",
    type=click.IntRange(min=1),
    default=DEFAULT_CHUNK_SIZE,
    show_default=True,
    envvar="FORMSTREAM_CHUNK_SIZE",
    help="Copy buffer size in bytes.",
)
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging.")
def main(
    input_file: str,
    output_file: str,
    field_name: str,
    filename: str | None,
    mime_type: str | None,
    fields: list[tuple[str, str]],
    boundary: str | None,
    chunk_size: int,
    verbose: bool,
) -> None:
    """Write a multipart/form-data body wrapping INPUT_FILE to OUTPUT_FILE."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    boundary = boundary or generate_boundary()
    try:
        written = write_multipart_body(
            input_file,
            output_file,
            field_name,
            filename,
            mime_type,
            boundary,
            fields,
            chunk_size=chunk_size,
        )
    except MultipartWriteError as exc:
        click.secho(f"Error: {exc}", fg="red", err=True)
        raise SystemExit(EXIT_CODES.get(type(exc), 1)) from exc
    except ValueError as exc:
        raise click.UsageError(str(exc)) from exc
    click.secho(f"Content-Type: {multipart_content_type(boundary)}", fg="green")
    click.secho(f"Content-Length: {written}", fg="green")


if __name__ == "__main__":
    main()
