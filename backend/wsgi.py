# backend/wsgi.py
import logging

from barpos import create_app
from barpos.services import maintenance_service

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)

app = create_app()


if __name__ == "__main__":
    with app.app_context():
        maintenance_service.wait_for_database(
            attempts=app.config["DB_CONNECT_ATTEMPTS"],
            delay=app.config["DB_CONNECT_DELAY"],
        )
    app.run(host=app.config["HOST"], port=app.config["PORT"], debug=app.config["ENV"] == "dev")
