import logging
import time

from flask import Flask
from tinydb import TinyDB
from tinydb.storages import MemoryStorage

from round_routes import round_bp, merkle_bp, init_round_bp, register_round
from solvency.entry import parse_entries_csv
from solvency.kzg import build_column_polynomials, generate_setup_artifacts
from solvency.round import Round
from solvency.signer import Signer

logger = logging.getLogger(__name__)

DEFAULT_CONFIG = {
    "SECRET_KEY": "key",
    "DB_PATH": "db.json",       # None이면 메모리 DB
    "PARAMS_PATH": None,        # 예: ptau/hermez-raw-11
    "ENTRIES_CSV": None,
    "DISPATCH_TIMEOUT": 30.0,
}


def create_app(config=None):
    """Flask 앱을 만든다.

    설정 우선순위: DEFAULT_CONFIG < SOLVENCY_* 환경 변수 < config 인자.
    """
    app = Flask(__name__)
    app.config.from_mapping(DEFAULT_CONFIG)
    app.config.from_prefixed_env("SOLVENCY")
    if config:
        app.config.update(config)

    if app.config["DB_PATH"] is None:
        db = TinyDB(storage=MemoryStorage)    # Memory DB
    else:
        db = TinyDB(app.config["DB_PATH"])    # Storage DB

    init_round_bp(db)
    app.register_blueprint(round_bp)
    app.register_blueprint(merkle_bp)
    app.extensions["solvency_db"] = db
    return app


def build_round_from_csv(csv_path, params_path, signer, timestamp=None):
    """CSV 원장과 신뢰 설정 파일에서 Round를 만든다."""
    entries, currencies = parse_entries_csv(csv_path)
    setup = generate_setup_artifacts(params_path, len(currencies))
    polys = build_column_polynomials(entries, len(currencies), setup.domain)
    if timestamp is None:
        timestamp = int(time.time())
    logger.info("Building round %s from %s (%s)", timestamp, csv_path, ", ".join(currencies))
    return Round(signer, polys, entries, setup, timestamp)


if __name__ == "__main__":
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    app = create_app()
    if app.config["ENTRIES_CSV"] and app.config["PARAMS_PATH"]:
        register_round(build_round_from_csv(
            app.config["ENTRIES_CSV"], app.config["PARAMS_PATH"], Signer()
        ))
    app.run(debug=True)
