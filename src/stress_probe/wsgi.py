"""WSGI entry point for production deployment.

Run with a single worker process: campaign state lives in the process that
spawned the burners, e.g. `gunicorn -w 1 --threads 4 stress_probe.wsgi:app`.
"""

from stress_probe.app import create_app

app = create_app()

if __name__ == "__main__":
    app.run()
