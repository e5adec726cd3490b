"""
Idempotency-Key support for mutating HTTP endpoints

The first response produced for a (scope, key) pair is persisted; any retry
with the same key and the same request body replays it byte for byte. Reusing
a key with a different body is a client bug and is rejected with 409.

Only successful (< 500) responses are stored. Errors raised as exceptions are
not recorded, so a retry after a transient failure executes again.
"""

from collections.abc import Awaitable, Callable
from datetime import datetime, timezone
import hashlib
from typing import Any, AsyncContextManager

import attrs
from fastapi import Response
import orjson
from pydantic import BaseModel
from sqlalchemy import delete
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from src.platform.exception.exceptions import ConflictError
from src.platform.idempotency.idempotency_record_model import IdempotencyRecordModel
from src.platform.logging.loguru_io import Logger


REPLAY_HEADER = 'Idempotent-Replayed'


@attrs.frozen
class StoredResponse:
    status_code: int
    body: bytes
    request_hash: str

    def to_response(self, *, replayed: bool) -> Response:
        headers = {REPLAY_HEADER: 'true'} if replayed else None
        return Response(
            content=self.body,
            status_code=self.status_code,
            media_type='application/json',
            headers=headers,
        )


class IdempotencyGuard:
    def __init__(self, session_factory: Callable[..., AsyncContextManager[AsyncSession]]) -> None:
        self.session_factory = session_factory

    @staticmethod
    def fingerprint(payload: Any) -> str:
        return hashlib.sha256(orjson.dumps(payload, option=orjson.OPT_SORT_KEYS)).hexdigest()

    async def lookup(self, *, scope: str, key: str) -> StoredResponse | None:
        async with self.session_factory() as session:
            record = await session.get(IdempotencyRecordModel, (scope, key))
            if record is None:
                return None
            return StoredResponse(
                status_code=record.status_code,
                body=record.response_body,
                request_hash=record.request_hash,
            )

    async def remember(
        self, *, scope: str, key: str, request_hash: str, status_code: int, body: bytes
    ) -> StoredResponse:
        """Persist the response; when a concurrent duplicate won, return the winner's response"""
        try:
            async with self.session_factory() as session:
                async with session.begin():
                    session.add(
                        IdempotencyRecordModel(
                            scope=scope,
                            key=key,
                            request_hash=request_hash,
                            status_code=status_code,
                            response_body=body,
                            created_at=datetime.now(timezone.utc),
                        )
                    )
        except IntegrityError:
            stored = await self.lookup(scope=scope, key=key)
            if stored is not None:
                if stored.request_hash != request_hash:
                    raise ConflictError(
                        'Idempotency-Key was already used with a different request'
                    )
                Logger.base.info(f'🔁 [IDEMPOTENCY] Concurrent duplicate for {scope}:{key}')
                return stored
            raise
        return StoredResponse(status_code=status_code, body=body, request_hash=request_hash)

    @Logger.io
    async def run(
        self,
        *,
        scope: str,
        key: str | None,
        payload: Any,
        handler: Callable[[], Awaitable[tuple[int, BaseModel]]],
    ) -> Response:
        if not key:
            status_code, model = await handler()
            return Response(
                content=orjson.dumps(model.model_dump(mode='json')),
                status_code=status_code,
                media_type='application/json',
            )

        request_hash = self.fingerprint(payload)
        stored = await self.lookup(scope=scope, key=key)
        if stored is not None:
            if stored.request_hash != request_hash:
                raise ConflictError('Idempotency-Key was already used with a different request')
            Logger.base.info(f'🔁 [IDEMPOTENCY] Replaying stored response for {scope}:{key}')
            return stored.to_response(replayed=True)

        status_code, model = await handler()
        body = orjson.dumps(model.model_dump(mode='json'))
        if status_code >= 500:
            return Response(content=body, status_code=status_code, media_type='application/json')

        stored = await self.remember(
            scope=scope, key=key, request_hash=request_hash, status_code=status_code, body=body
        )
        return stored.to_response(replayed=stored.body != body)

    @Logger.io
    async def purge_older_than(self, *, cutoff: datetime) -> int:
        async with self.session_factory() as session:
            async with session.begin():
                result = await session.execute(
                    delete(IdempotencyRecordModel)
                    .where(IdempotencyRecordModel.created_at < cutoff)
                    .returning(IdempotencyRecordModel.key)
                )
                return len(result.all())

