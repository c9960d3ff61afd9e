"""Development entrypoint: `python app.py` serves the API on port 5000."""

from src.hrms.hrms.main import create_app

app = create_app()


if __name__ == "__main__":
    app.run(host="0.0.0.0", port=5000, debug=app.config["DEBUG"])
