"""
Video Store Service
SQLite-backed persistence for video projects, templates and effects.
"""

import asyncio
import json
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

import aiosqlite

from ..models.catalog import SAMPLE_EFFECTS, SAMPLE_TEMPLATES, Effect, Template
from ..models.video import VideoProject, VideoStatus
from ..utils.exceptions import PersistenceError
from ..utils.logger import get_logger

logger = get_logger()


class VideoStore:
    """Persistent storage for video projects and the catalog."""

    def __init__(self, db_path: str):
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._initialized = False
        self._init_lock = asyncio.Lock()
        self._write_lock = asyncio.Lock()

    async def initialize(self):
        """Initialize database schema and seed the catalog."""
        if self._initialized:
            return

        async with self._init_lock:
            if self._initialized:
                return

            async with aiosqlite.connect(self.db_path) as conn:
                await conn.execute("PRAGMA journal_mode=WAL")
                await conn.execute("PRAGMA synchronous=NORMAL")
                await conn.execute(
                    """
                    CREATE TABLE IF NOT EXISTS videos (
                        id TEXT PRIMARY KEY,
                        owner_id TEXT NOT NULL,
                        status TEXT NOT NULL,
                        payload TEXT NOT NULL,
                        created_at TEXT NOT NULL
                    )
                    """
                )
                await conn.execute(
                    "CREATE INDEX IF NOT EXISTS idx_videos_owner_id ON videos(owner_id)"
                )
                for table in ("templates", "effects"):
                    await conn.execute(
                        f"""
                        CREATE TABLE IF NOT EXISTS {table} (
                            id TEXT PRIMARY KEY,
                            category TEXT NOT NULL,
                            payload TEXT NOT NULL
                        )
                        """
                    )
                await conn.commit()
                await self._seed_catalog(conn)

            self._initialized = True
            logger.info(f"Video store initialized at {self.db_path}")

    async def _seed_catalog(self, conn: aiosqlite.Connection):
        cursor = await conn.execute("SELECT COUNT(*) FROM templates")
        (template_count,) = await cursor.fetchone()
        await cursor.close()
        if template_count == 0:
            for data in SAMPLE_TEMPLATES:
                template = Template(**data)
                await conn.execute(
                    "INSERT INTO templates (id, category, payload) VALUES (?, ?, ?)",
                    (template.id, template.category, self._to_json(template)),
                )

        cursor = await conn.execute("SELECT COUNT(*) FROM effects")
        (effect_count,) = await cursor.fetchone()
        await cursor.close()
        if effect_count == 0:
            for data in SAMPLE_EFFECTS:
                effect = Effect(**data)
                await conn.execute(
                    "INSERT INTO effects (id, category, payload) VALUES (?, ?, ?)",
                    (effect.id, effect.category, self._to_json(effect)),
                )

        await conn.commit()

    @staticmethod
    def _to_json(model) -> str:
        return json.dumps(model.model_dump(mode="json"), ensure_ascii=False)

    async def _fetch_payloads(self, query: str, params: tuple = ()) -> List[str]:
        await self.initialize()
        async with aiosqlite.connect(self.db_path) as conn:
            cursor = await conn.execute(query, params)
            rows = await cursor.fetchall()
            await cursor.close()
        return [payload for (payload,) in rows]

    # ======================================================================
    # Video projects
    # ======================================================================

    async def _write_video(self, conn: aiosqlite.Connection, video: VideoProject):
        await conn.execute(
            """
            INSERT INTO videos (id, owner_id, status, payload, created_at)
            VALUES (?, ?, ?, ?, ?)
            ON CONFLICT(id) DO UPDATE SET
                status = excluded.status,
                payload = excluded.payload
            """,
            (
                video.id,
                video.owner_id,
                VideoStatus(video.status).value,
                self._to_json(video),
                video.created_at.isoformat(),
            ),
        )

    async def create_video(self, video: VideoProject) -> VideoProject:
        """Insert a new video project."""
        await self.initialize()
        async with self._write_lock:
            try:
                async with aiosqlite.connect(self.db_path) as conn:
                    await self._write_video(conn, video)
                    await conn.commit()
            except aiosqlite.Error as exc:
                raise PersistenceError(f"Failed to create video: {exc}", record_id=video.id) from exc
        return video

    async def get_video(self, video_id: str) -> Optional[VideoProject]:
        """Return a video project by id."""
        payloads = await self._fetch_payloads(
            "SELECT payload FROM videos WHERE id = ?", (video_id,)
        )
        if not payloads:
            return None
        return VideoProject(**json.loads(payloads[0]))

    async def list_videos(self, owner_id: Optional[str] = None) -> List[VideoProject]:
        """Return video projects, newest first, optionally for one owner."""
        query = "SELECT payload FROM videos"
        params: tuple = ()

        if owner_id:
            query += " WHERE owner_id = ?"
            params = (owner_id,)

        query += " ORDER BY created_at DESC"

        videos: List[VideoProject] = []
        for payload in await self._fetch_payloads(query, params):
            try:
                videos.append(VideoProject(**json.loads(payload)))
            except Exception as exc:
                logger.warning(f"Skipping invalid stored video payload: {exc}")
        return videos

    async def list_processing(self) -> List[VideoProject]:
        """Return every video project still marked as processing."""
        payloads = await self._fetch_payloads(
            "SELECT payload FROM videos WHERE status = ?",
            (VideoStatus.PROCESSING.value,),
        )
        return [VideoProject(**json.loads(payload)) for payload in payloads]

    async def update_video(self, video_id: str, changes: Dict[str, Any]) -> Optional[VideoProject]:
        """Merge changes into a stored video project; None if it does not exist."""
        await self.initialize()
        async with self._write_lock:
            async with aiosqlite.connect(self.db_path) as conn:
                cursor = await conn.execute(
                    "SELECT payload FROM videos WHERE id = ?", (video_id,)
                )
                row = await cursor.fetchone()
                await cursor.close()
                if row is None:
                    return None

                data = json.loads(row[0])
                data.update(changes)
                data["id"] = video_id
                data["updated_at"] = datetime.utcnow()
                video = VideoProject(**data)

                try:
                    await self._write_video(conn, video)
                    await conn.commit()
                except aiosqlite.Error as exc:
                    raise PersistenceError(f"Failed to update video: {exc}", record_id=video_id) from exc
        return video

    async def delete_video(self, video_id: str) -> bool:
        """Delete a video project; False if it did not exist."""
        await self.initialize()
        async with self._write_lock:
            async with aiosqlite.connect(self.db_path) as conn:
                cursor = await conn.execute("DELETE FROM videos WHERE id = ?", (video_id,))
                deleted = cursor.rowcount > 0
                await cursor.close()
                await conn.commit()
        return deleted

    # ======================================================================
    # Catalog
    # ======================================================================

    async def get_template(self, template_id: str) -> Optional[Template]:
        payloads = await self._fetch_payloads(
            "SELECT payload FROM templates WHERE id = ?", (template_id,)
        )
        return Template(**json.loads(payloads[0])) if payloads else None

    async def list_templates(self, category: Optional[str] = None) -> List[Template]:
        """Templates sorted by popularity, optionally filtered by category."""
        if category:
            payloads = await self._fetch_payloads(
                "SELECT payload FROM templates WHERE category = ?", (category,)
            )
        else:
            payloads = await self._fetch_payloads("SELECT payload FROM templates")
        templates = [Template(**json.loads(payload)) for payload in payloads]
        return sorted(templates, key=lambda item: item.popularity_score, reverse=True)

    async def get_effect(self, effect_id: str) -> Optional[Effect]:
        payloads = await self._fetch_payloads(
            "SELECT payload FROM effects WHERE id = ?", (effect_id,)
        )
        return Effect(**json.loads(payloads[0])) if payloads else None

    async def list_effects(
        self,
        category: Optional[str] = None,
        trending: bool = False
    ) -> List[Effect]:
        """Effects sorted by usage count; trending takes precedence over category."""
        if category and not trending:
            payloads = await self._fetch_payloads(
                "SELECT payload FROM effects WHERE category = ?", (category,)
            )
        else:
            payloads = await self._fetch_payloads("SELECT payload FROM effects")

        effects = [Effect(**json.loads(payload)) for payload in payloads]
        if trending:
            effects = [effect for effect in effects if effect.is_trending]
        return sorted(effects, key=lambda item: item.usage_count, reverse=True)
