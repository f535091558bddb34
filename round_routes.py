"""
Round / Merkle Flask Blueprint
================================

포함 증명 조회와 머클 합 트리 증명 검증 엔드포인트.

  GET  /rounds                               등록된 라운드 타임스탬프 목록
  GET  /rounds/<timestamp>                   라운드 요약
  GET  /rounds/<timestamp>/proofs/<index>    KZG 포함 증명
  POST /rounds/<timestamp>/dispatch          커밋먼트 서명자 제출
  POST /merkle/verify                        머클 합 트리 증명 검증
"""

import asyncio
import logging

from flask import Blueprint, current_app, jsonify, request
from tinydb import Query

from solvency.errors import CommitmentDispatchError, OutOfRangeError, ProofSelfCheckError
from solvency.merkle_sum_tree import verify_proof
from solvency.serializers import (
    deserialize_merkle_proof,
    serialize_bytes,
    serialize_inclusion_proof,
)

logger = logging.getLogger(__name__)

round_bp = Blueprint('round', __name__, url_prefix='/rounds')
merkle_bp = Blueprint('merkle', __name__, url_prefix='/merkle')

DATA = Query()

# DB는 app.py에서 주입
DB = None

# timestamp → Round
ROUNDS = {}


def init_round_bp(db):
    """app.py에서 DB를 주입받는다. 등록된 라운드는 비운다."""
    global DB
    DB = db
    ROUNDS.clear()


def register_round(round_):
    """라운드를 조회 대상으로 등록하고 요약을 DB에 기록한다.

    같은 타임스탬프로 다시 등록하면 이전 스냅샷의 증명 캐시는 버린다.
    """
    timestamp = round_.get_timestamp()
    db_remove_prefix(f"proof.{timestamp}.")
    ROUNDS[timestamp] = round_
    db_set(f"round.{timestamp}", round_summary(round_))
    logger.info("Round %s registered", timestamp)


def round_summary(round_):
    snapshot = round_.snapshot
    return {
        "timestamp": round_.get_timestamp(),
        "n_users": len(snapshot.entries),
        "n_currencies": snapshot.n_columns - 1,
        "commitment": serialize_bytes(snapshot.commitment()),
    }


# ─── DB 헬퍼 ───

def db_get(key):
    """DB에서 키로 데이터를 조회한다."""
    result = DB.search(DATA.type == key)
    if not result:
        return None
    return result[0].get("data")


def db_set(key, data):
    """DB에 키로 데이터를 저장한다."""
    DB.upsert({"type": key, "data": data}, DATA.type == key)


def db_remove_prefix(prefix):
    """prefix로 시작하는 모든 키를 삭제한다."""
    DB.remove(DATA.type.test(lambda t: t.startswith(prefix)))


def _error(message, status):
    return jsonify({"error": message}), status


# ──────────────────────────────────────────────────────────────
# Round
# ──────────────────────────────────────────────────────────────

@round_bp.route("")
def list_rounds():
    return jsonify({"rounds": sorted(ROUNDS)})


@round_bp.route("/<int:timestamp>")
def get_round(timestamp):
    summary = db_get(f"round.{timestamp}")
    if timestamp not in ROUNDS or summary is None:
        return _error(f"unknown round {timestamp}", 404)
    return jsonify(summary)


@round_bp.route("/<int:timestamp>/proofs/<int:user_index>")
def get_proof_of_inclusion(timestamp, user_index):
    """KZG 포함 증명을 반환한다. 한 번 만든 증명은 DB에서 재사용한다."""
    round_ = ROUNDS.get(timestamp)
    if round_ is None:
        return _error(f"unknown round {timestamp}", 404)

    key = f"proof.{timestamp}.{user_index}"
    cached = db_get(key)
    if cached is not None:
        return jsonify(cached)

    try:
        proof = round_.get_proof_of_inclusion(user_index)
    except OutOfRangeError as e:
        return _error(str(e), 404)
    except ProofSelfCheckError as e:
        logger.error("Round %s: %s", timestamp, e)
        return _error(str(e), 500)

    data = serialize_inclusion_proof(proof)
    db_set(key, data)
    return jsonify(data)


@round_bp.route("/<int:timestamp>/dispatch", methods=["POST"])
def dispatch_commitment(timestamp):
    round_ = ROUNDS.get(timestamp)
    if round_ is None:
        return _error(f"unknown round {timestamp}", 404)

    timeout = current_app.config.get("DISPATCH_TIMEOUT")
    try:
        asyncio.run(round_.dispatch_commitment(timeout=timeout))
    except CommitmentDispatchError as e:
        return _error(str(e), 502)

    db_set(f"dispatch.{timestamp}", {"dispatched": True})
    return jsonify({"timestamp": timestamp, "dispatched": True})


# ──────────────────────────────────────────────────────────────
# Merkle sum tree
# ──────────────────────────────────────────────────────────────

@merkle_bp.route("/verify", methods=["POST"])
def verify_merkle_proof():
    """머클 합 트리 증명 검증. 형식이 틀린 본문은 400, 그 외에는 {"valid": bool}."""
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return _error("request body must be a JSON object", 400)
    try:
        proof = deserialize_merkle_proof(data)
    except (KeyError, TypeError, ValueError) as e:
        return _error(f"malformed merkle proof: {e}", 400)
    return jsonify({"valid": verify_proof(proof)})
