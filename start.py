import argparse
import os
import subprocess


def run_fastapi():
    """Run FastAPI backend on port 8000."""
    subprocess.run(
        [
            "uvicorn",
            "app.main:app",
            "--host",
            "0.0.0.0",
            "--port",
            str(os.getenv("PORT", 8000)),
            "--proxy-headers",
            "--workers",
            str(os.getenv("UVICORN_WORKERS", 1)),
        ],
        check=True,
    )


def run_mcp():
    """Serve the MCP tools and resources over stdio."""
    from app.mcp_server import main

    main()


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="SafeQuery launcher")
    parser.add_argument(
        "--transport",
        choices=("http", "mcp"),
        default=os.getenv("SAFEQUERY_TRANSPORT", "http"),
        help="http: FastAPI under uvicorn; mcp: MCP server over stdio",
    )
    return parser.parse_args(argv)


if __name__ == "__main__":
    args = parse_args()
    if args.transport == "mcp":
        run_mcp()
    else:
        print("[start] launching uvicorn...", flush=True)
        run_fastapi()
