import logging

from flask import Flask, jsonify

from tinydb import TinyDB
from tinydb.storages import MemoryStorage

from giftcard.circuit import GiftCardCircuit
from giftcard.ledger import Ledger
from giftcard.params import TREE_DEPTH, AMOUNT_BITS, ROOT_HISTORY_SIZE

from giftcard_routes import giftcard_bp, init_giftcard_bp

# GIFTCARD_ 접두사 환경변수로 덮어쓸 수 있다 (예: GIFTCARD_TREE_DEPTH=20)
DEFAULT_CONFIG = {
    "DB_PATH": "db.json",           # ":memory:" 이면 MemoryStorage
    "TREE_DEPTH": TREE_DEPTH,
    "AMOUNT_BITS": AMOUNT_BITS,
    "RANGE_CHECK_AMOUNTS": True,
    "ROOT_HISTORY_SIZE": ROOT_HISTORY_SIZE,
    "LOG_LEVEL": "INFO",
}


def open_db(path):
    if path == ":memory:":
        return TinyDB(storage=MemoryStorage)   # Memory DB
    return TinyDB(path)                         # Storage DB


def create_app(config=None):
    app = Flask(__name__)
    app.config.from_mapping(DEFAULT_CONFIG)
    app.config.from_prefixed_env("GIFTCARD")
    if config:
        app.config.update(config)

    logging.basicConfig(level=app.config["LOG_LEVEL"])
    app.logger.setLevel(app.config["LOG_LEVEL"])

    db = open_db(app.config["DB_PATH"])
    ledger = Ledger(db,
                    depth=app.config["TREE_DEPTH"],
                    root_history=app.config["ROOT_HISTORY_SIZE"])
    circuit = GiftCardCircuit(depth=app.config["TREE_DEPTH"],
                              amount_bits=app.config["AMOUNT_BITS"],
                              range_check_amounts=app.config["RANGE_CHECK_AMOUNTS"])

    init_giftcard_bp(ledger, circuit)
    app.register_blueprint(giftcard_bp)

    @app.route("/")
    def main():
        return jsonify({
            "service": "giftcard",
            "depth": circuit.depth,
            "constraints": circuit.num_constraints,
        })

    app.logger.info("giftcard app ready (db=%s, depth=%d)",
                    app.config["DB_PATH"], app.config["TREE_DEPTH"])
    return app


if __name__ == "__main__":
    create_app().run(debug=True)
