import asyncio
import os
import tempfile

import click
from formstream import (
    generate_boundary,
    multipart_content_type,
    write_multipart_body,
    write_multipart_body_async,
    InputUnreadableError,
)


async def main() -> None:
    with tempfile.TemporaryDirectory() as tmp:
        src = os.path.join(tmp, "hello.txt")
        with open(src, "wb") as f:
            f.write(b"hello upload")

        boundary = generate_boundary()
        out = os.path.join(tmp, "body.bin")
        length = write_multipart_body(
            src, out, "file", "hello.txt", "text/plain", boundary, {"foo": "bar"}
        )
        click.secho(f"Content-Type: {multipart_content_type(boundary)}", fg="green")
        click.secho(f"Content-Length: {length}", fg="green")

        # Same thing without blocking the event loop
        length = await write_multipart_body_async(
            src, out, "file", None, None, generate_boundary(), [("a", "1"), ("b", "2")]
        )
        click.secho(f"Async body: {length} bytes", fg="blue")

        try:
            write_multipart_body(
                os.path.join(tmp, "missing.txt"), out, "file", None, None, boundary
            )
        except InputUnreadableError as exc:
            click.secho(f"Expected failure: {exc}", fg="yellow")
        print("Output left behind:", os.path.exists(out))


if __name__ == "__main__":
    asyncio.run(main())
