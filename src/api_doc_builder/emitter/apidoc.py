"""Writes apiDoc comment blocks into one source file per API group."""

import re
from pathlib import Path

from api_doc_builder.docs.api_call import APICall

BANNER = [
    "# ************************************************* #",
    "#       AUTO-GENERATED. DO NOT EDIT THIS FILE.      #",
    "# ************************************************* #",
    "#    Create your files in `resources/docs/manual`   #",
    "# ************************************************* #",
]

DEFINITIONS_FILE = "definitions"


def snake_case(text: str) -> str:
    """`User Profiles` / `UserProfiles` -> `user_profiles`."""
    text = re.sub(r"(?<=[a-z0-9])([A-Z])", r"_\1", text.strip())
    text = re.sub(r"[\s\-]+", "_", text)
    return re.sub(r"_+", "_", text).lower()


def source_file_name(call: APICall, extension: str) -> str:
    group = call.get_group()
    base = snake_case(group) if group else DEFINITIONS_FILE
    return f"{base}.{extension}"


def write_doc_source_files(calls: list[APICall], output_dir: Path, extension: str = "coffee") -> list[Path]:
    """Replace the generated source files in `output_dir`.

    Old `*.{extension}` files are removed first, then every call is
    appended to the file of its group. Returns the files written, in
    first-written order.
    """
    output_dir.mkdir(parents=True, exist_ok=True)

    for old_file in output_dir.glob(f"*.{extension}"):
        old_file.unlink()

    written: list[Path] = []
    for call in calls:
        output_path = output_dir / source_file_name(call, extension)
        lines = [*BANNER, call.get_api_doc(), ""]

        with output_path.open("a", encoding="utf-8", newline="") as f:
            f.write("\r\n".join(lines))

        if output_path not in written:
            written.append(output_path)

    return written
