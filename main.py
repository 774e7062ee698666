"""CLI entry point: python main.py {init-db,seed,serve}"""

import argparse
import os

from src.db.engine import get_session_factory, init_db
from src.db.seed import seed_demo_data
from src.logging_config import configure_logging
from src.settings import get_settings


def cmd_init_db(args):
    init_db()
    print(f"Schema ready at {get_settings().database_url}")


def cmd_seed(args):
    init_db()
    session = get_session_factory()()
    try:
        user = seed_demo_data(session)
        print(f"Demo user: {user.username} (userId={user.user_id})")
    finally:
        session.close()


def cmd_serve(args):
    import uvicorn

    uvicorn.run(
        "src.api.app:create_app",
        factory=True,
        host=args.host,
        port=args.port,
        reload=args.reload,
        log_config=None,
    )


def main(argv=None):
    parser = argparse.ArgumentParser(
        description="Folio - portfolio ledger, order book and holdings valuation"
    )
    parser.add_argument(
        "--console-logs", action="store_true",
        help="Human-readable log output instead of JSON"
    )
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("init-db", help="Create database tables").set_defaults(func=cmd_init_db)
    sub.add_parser("seed", help="Insert demo user, assets and accounts").set_defaults(func=cmd_seed)

    serve = sub.add_parser("serve", help="Run the API server")
    serve.add_argument("--host", default="127.0.0.1")
    serve.add_argument("--port", type=int, default=8000)
    serve.add_argument("--reload", action="store_true", help="Reload on code changes")
    serve.set_defaults(func=cmd_serve)

    args = parser.parse_args(argv)

    # The server's startup hook reconfigures logging, so pass the choice via env.
    if args.console_logs:
        os.environ["FOLIO_LOG_FORMAT"] = "console"
    configure_logging()

    args.func(args)


if __name__ == "__main__":
    main()
