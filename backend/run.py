"""
Serve the FormFlow API with uvicorn.

Usage:
    python run.py
    python run.py --reload
    python run.py --host 0.0.0.0 --port 8080 --workers 4
"""
import argparse
import uvicorn


def main():
    parser = argparse.ArgumentParser(description="Run the FormFlow API server")
    parser.add_argument("--host", type=str, default="127.0.0.1", help="Bind address (default: 127.0.0.1)")
    parser.add_argument("--port", type=int, default=8000, help="Bind port (default: 8000)")
    parser.add_argument("--reload", action="store_true", help="Restart on code changes")
    parser.add_argument(
        "--workers",
        type=int,
        default=1,
        help="Worker processes; folio issuance is safe across workers (ignored with --reload)"
    )
    args = parser.parse_args()

    print(f"FormFlow API on {args.host}:{args.port} (reload={args.reload})")

    uvicorn.run(
        "formflow.main:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
        workers=1 if args.reload else args.workers
    )


if __name__ == "__main__":
    main()
