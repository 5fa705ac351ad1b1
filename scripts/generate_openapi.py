"""Write the OpenAPI document of the VidShare API to ``docs/vidshare_openapi.yaml``."""

import pathlib
import sys

import yaml
from fastapi import FastAPI

from vidshare.main import app

OUTPUT_PATH = pathlib.Path("docs/vidshare_openapi.yaml")


def main() -> None:  # Entry-point for poetry script
    if not isinstance(app, FastAPI):
        sys.stderr.write("Imported object `app` is not a FastAPI instance.\n")
        sys.exit(1)

    OUTPUT_PATH.parent.mkdir(parents=True, exist_ok=True)
    OUTPUT_PATH.write_text(yaml.safe_dump(app.openapi(), sort_keys=False))
    print(f"✔ OpenAPI spec written to {OUTPUT_PATH}")


if __name__ == "__main__":
    main()
