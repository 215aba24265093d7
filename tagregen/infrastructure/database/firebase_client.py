"""Firebase Firestore 클라이언트 초기화.

firebase-admin SDK로 초기화한 뒤 Firestore 클라이언트를 제공한다.
서비스 계정 키 JSON 파일이 없으면 Application Default Credentials를 쓴다.
"""

from __future__ import annotations

import logging
from pathlib import Path

import firebase_admin
from firebase_admin import credentials, firestore

logger = logging.getLogger(__name__)

_db = None


def init_firebase(
    credential_path: str | None = None,
    project_id: str | None = None,
):
    """Firebase 앱을 초기화하고 Firestore 클라이언트를 반환.

    Args:
        credential_path: 서비스 계정 키 JSON 파일 경로.
                         없으면 GOOGLE_APPLICATION_CREDENTIALS / ADC 사용.
        project_id: Firebase 프로젝트 ID (선택).
    """
    global _db

    if _db is not None:
        return _db

    if not firebase_admin._apps:
        if credential_path and Path(credential_path).exists():
            cred = credentials.Certificate(credential_path)
        else:
            cred = credentials.ApplicationDefault()
        options = {"projectId": project_id} if project_id else {}
        firebase_admin.initialize_app(cred, options)
        logger.info("Firebase 앱 초기화 완료")

    _db = firestore.client()
    return _db


def get_firestore_client():
    """초기화된 Firestore 클라이언트를 반환."""
    if _db is None:
        raise RuntimeError("Firebase가 초기화되지 않았습니다. init_firebase()를 먼저 호출하세요.")
    return _db
