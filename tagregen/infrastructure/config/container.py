"""의존성 주입 컨테이너.

모든 의존성 조립은 최외곽(Composition Root)에서 이루어진다.
설정에 따라 구체 구현을 생성하고 엔진과 실행 관리자에 주입한다.
"""

from __future__ import annotations

from tagregen.application.use_cases.generate_tags import ItemGenerator
from tagregen.application.use_cases.regenerate_tags import BulkRegenerationEngine
from tagregen.application.use_cases.run_tracker import RunTracker
from tagregen.domain.repositories.failure_repository import FailureStore
from tagregen.domain.repositories.resource_repository import ResourceEnumerator
from tagregen.domain.repositories.tag_repository import TagStore
from tagregen.domain.services.remote_generator import RemoteGenerator
from tagregen.infrastructure.ai.openai_generator import OpenAIRemoteGenerator
from tagregen.infrastructure.config.settings import AppConfig, Settings
from tagregen.infrastructure.database.repositories.bookmark_repo import FirestoreBookmarkRepository
from tagregen.infrastructure.database.repositories.failure_repo import FirestoreFailureRepository
from tagregen.infrastructure.database.repositories.tag_repo import FirestoreTagRepository


class Container:
    """애플리케이션 의존성 컨테이너."""

    def __init__(
        self,
        settings: Settings,
        app_config: AppConfig,
        firestore_db=None,
        *,
        resources: ResourceEnumerator | None = None,
        tag_store: TagStore | None = None,
        failure_store: FailureStore | None = None,
        remote_generator: RemoteGenerator | None = None,
        preview_mode: bool | None = None,
    ):
        self.settings = settings
        self.config = app_config

        # ─── Repositories (Firebase Firestore) ───
        self.bookmark_repo = resources or FirestoreBookmarkRepository(firestore_db)
        self.tag_repo = tag_store or FirestoreTagRepository(firestore_db)
        self.failure_repo = failure_store or FirestoreFailureRepository(firestore_db)

        # ─── Infrastructure Services ───
        self.remote_generator = remote_generator or OpenAIRemoteGenerator(
            api_key=settings.openai_api_key,
            config=app_config.tagging,
            base_url=settings.openai_base_url or None,
        )

        # ─── Use Cases ───
        self.generation_config = app_config.regeneration.to_generation_config(preview_mode)
        self.engine = BulkRegenerationEngine(
            config=self.generation_config,
            resources=self.bookmark_repo,
            tag_store=self.tag_repo,
            failure_store=self.failure_repo,
            generator=ItemGenerator(
                self.remote_generator,
                stream=app_config.tagging.stream,
                language=app_config.tagging.language,
            ),
            backoff=app_config.backoff.to_policy(),
        )
        self.run_tracker = RunTracker(self.engine)
