"""Run the simpledex API server."""

from simpledex.main import main

if __name__ == "__main__":
    main()
