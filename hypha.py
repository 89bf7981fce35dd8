"""Production entrypoint: file-backed sessions under ./data."""
import argparse
from typing import Iterable, Optional

from hypha_lib.main import create_app, Config


def parse_args(argv: Optional[Iterable[str]] = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Run the Hypha server")
    p.add_argument("--host", default="127.0.0.1", help="Interface to bind")
    p.add_argument("--port", type=int, default=8000, help="Port to listen on")
    p.add_argument("--data-dir", default="data", help="Directory for config, sessions and lock files")
    p.add_argument("--serializer", default="pickle", choices=("pickle", "json", "yaml"), help="Session record format")
    return p.parse_args(list(argv) if argv is not None else None)


if __name__ == "__main__":
    import uvicorn
    args = parse_args()
    app = create_app(Config(data_dir=args.data_dir, serializer=args.serializer))
    uvicorn.run(app, host=args.host, port=args.port)
