from app.saved_places.run import _cli_entrypoint

if __name__ == "__main__":
    # Same as `python -m app.saved_places.run <list-url>`.
    raise SystemExit(_cli_entrypoint())
