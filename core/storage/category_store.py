"""
CategoryStore - 카테고리 저장소

category 테이블 CRUD (소유자 범위).

규칙:
- 부모는 같은 소유자의 활성 카테고리이며 유형이 같아야 한다
- 부모 체인에 순환이 생기면 안 된다
- 활성 자식이 있는 카테고리는 삭제/유형 변경 불가
"""

import logging
import uuid
from datetime import datetime, timezone
from typing import Any

from adapters.db.sqlite_adapter import DatabaseExecutor
from core.domain.models import Category
from core.domain.requests import CategoryCreateRequest, CategoryUpdateRequest, parse_request
from core.errors import NotFoundError, ValidationError
from core.types import CategoryType

logger = logging.getLogger(__name__)


# 신규 사용자 기본 카테고리 (name, type, icon, color)
DEFAULT_CATEGORIES: list[tuple[str, CategoryType, str, str]] = [
    ("Salary", CategoryType.INCOME, "cash", "#4CAF50"),
    ("Food", CategoryType.EXPENSE, "restaurant", "#FF5722"),
    ("Rent", CategoryType.EXPENSE, "home", "#2196F3"),
]


class CategoryStore:
    """카테고리 저장소

    Args:
        db: SQLiteAdapter 또는 UnitOfWork
    """

    def __init__(self, db: DatabaseExecutor):
        self.db = db

    async def find(self, owner_id: str, category_id: str) -> Category | None:
        row = await self.db.fetchone(
            "SELECT * FROM category WHERE id = ? AND owner_id = ?",
            (category_id, owner_id),
        )
        if row is None:
            return None
        return Category.from_row(dict(row))

    async def get(self, owner_id: str, category_id: str) -> Category:
        """카테고리 조회

        Raises:
            NotFoundError: 없거나 소유자가 다른 경우
        """
        category = await self.find(owner_id, category_id)
        if category is None:
            raise NotFoundError("카테고리를 찾을 수 없습니다")
        return category

    async def get_active(self, owner_id: str, category_id: str) -> Category:
        """새 참조에 사용할 수 있는 (활성) 카테고리 조회

        Raises:
            NotFoundError: 없거나 소유자가 다른 경우
            ValidationError: 비활성 카테고리
        """
        category = await self.get(owner_id, category_id)
        if not category.is_active:
            raise ValidationError(f"'{category.name}' 카테고리는 비활성 상태입니다")
        return category

    async def list_categories(
        self,
        owner_id: str,
        category_type: CategoryType | None = None,
        include_inactive: bool = False,
    ) -> list[Category]:
        """카테고리 목록 (표시 순서, 이름 순)"""
        sql = "SELECT * FROM category WHERE owner_id = ?"
        params: list[Any] = [owner_id]
        if not include_inactive:
            sql += " AND is_active = 1"
        if category_type is not None:
            sql += " AND type = ?"
            params.append(CategoryType(category_type).value)
        sql += " ORDER BY sort_order ASC, name ASC"

        rows = await self.db.fetchall(sql, tuple(params))
        return [Category.from_row(dict(row)) for row in rows]

    async def get_hierarchy(
        self,
        owner_id: str,
        category_type: CategoryType | None = None,
    ) -> list[dict[str, Any]]:
        """최상위 카테고리 + 자식 목록"""
        categories = await self.list_categories(owner_id, category_type)
        children: dict[str, list[dict[str, Any]]] = {}
        for category in categories:
            if category.parent_id:
                children.setdefault(category.parent_id, []).append(category.to_dict())

        return [
            {**category.to_dict(), "children": children.get(category.id, [])}
            for category in categories
            if not category.parent_id
        ]

    async def create_category(
        self,
        owner_id: str,
        request: CategoryCreateRequest | dict[str, Any],
    ) -> Category:
        """카테고리 생성

        Raises:
            NotFoundError: 부모 카테고리가 없는 경우
            ValidationError: 입력 오류, 부모 유형 불일치
        """
        req = parse_request(CategoryCreateRequest, request)
        if req.parent_id:
            await self._check_parent(owner_id, req.parent_id, req.type)

        category_id = f"cat-{uuid.uuid4().hex[:12]}"
        now = datetime.now(timezone.utc).isoformat()

        await self.db.execute(
            """
            INSERT INTO category (
                id, owner_id, name, type, parent_id, icon, color,
                sort_order, is_active, created_at, updated_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, 1, ?, ?)
            """,
            (
                category_id,
                owner_id,
                req.name.strip(),
                req.type.value,
                req.parent_id,
                req.icon,
                req.color,
                req.order,
                now,
                now,
            ),
        )

        logger.info(f"카테고리 생성: {category_id}", extra={"owner_id": owner_id})
        return await self.get(owner_id, category_id)

    async def update_category(
        self,
        owner_id: str,
        category_id: str,
        changes: CategoryUpdateRequest | dict[str, Any],
    ) -> Category:
        """카테고리 수정 (부분 수정)

        Raises:
            NotFoundError: 카테고리/부모가 없는 경우
            ValidationError: 순환 참조, 유형 불일치, 활성 자식이 있는데 유형 변경
        """
        category = await self.get(owner_id, category_id)
        req = parse_request(CategoryUpdateRequest, changes)
        fields = req.model_fields_set

        new_type = req.type if "type" in fields and req.type else category.type
        new_parent = req.parent_id if "parent_id" in fields else category.parent_id

        if new_type != category.type and await self._count_active_children(owner_id, category_id):
            raise ValidationError("활성 하위 카테고리가 있어 유형을 변경할 수 없습니다")

        if new_parent and ("parent_id" in fields or new_type != category.type):
            if new_parent == category_id:
                raise ValidationError("자기 자신을 부모로 지정할 수 없습니다")
            await self._check_parent(owner_id, new_parent, new_type)
            await self._check_no_cycle(owner_id, category_id, new_parent)

        await self.db.execute(
            """
            UPDATE category SET
                name = ?, type = ?, parent_id = ?, icon = ?, color = ?,
                sort_order = ?, updated_at = ?
            WHERE id = ? AND owner_id = ?
            """,
            (
                req.name.strip() if "name" in fields and req.name else category.name,
                CategoryType(new_type).value,
                new_parent,
                req.icon if "icon" in fields else category.icon,
                req.color if "color" in fields else category.color,
                req.order if "order" in fields and req.order is not None else category.order,
                datetime.now(timezone.utc).isoformat(),
                category_id,
                owner_id,
            ),
        )

        logger.info(f"카테고리 수정: {category_id}", extra={"owner_id": owner_id})
        return await self.get(owner_id, category_id)

    async def delete_category(self, owner_id: str, category_id: str) -> Category:
        """카테고리 비활성화 (soft delete)

        Raises:
            NotFoundError: 카테고리가 없는 경우
            ValidationError: 활성 하위 카테고리가 있는 경우
        """
        await self.get(owner_id, category_id)
        if await self._count_active_children(owner_id, category_id):
            raise ValidationError("활성 하위 카테고리가 있어 삭제할 수 없습니다")

        await self.db.execute(
            "UPDATE category SET is_active = 0, updated_at = ? WHERE id = ? AND owner_id = ?",
            (datetime.now(timezone.utc).isoformat(), category_id, owner_id),
        )

        logger.info(f"카테고리 비활성화: {category_id}", extra={"owner_id": owner_id})
        return await self.get(owner_id, category_id)

    async def create_defaults(self, owner_id: str) -> list[Category]:
        """기본 카테고리 생성 (카테고리가 하나도 없는 사용자만)"""
        if await self.list_categories(owner_id, include_inactive=True):
            return []

        created = []
        for name, category_type, icon, color in DEFAULT_CATEGORIES:
            created.append(
                await self.create_category(
                    owner_id,
                    {"name": name, "type": category_type, "icon": icon, "color": color},
                )
            )
        return created

    # -------------------------------------------------------------------------
    # 내부
    # -------------------------------------------------------------------------

    async def _check_parent(
        self,
        owner_id: str,
        parent_id: str,
        category_type: CategoryType,
    ) -> None:
        parent = await self.get_active(owner_id, parent_id)
        if parent.type != category_type:
            raise ValidationError("하위 카테고리의 유형은 부모 카테고리와 같아야 합니다")

    async def _check_no_cycle(self, owner_id: str, category_id: str, parent_id: str) -> None:
        """부모 체인을 따라 올라가며 자기 자신이 나오는지 확인"""
        seen: set[str] = set()
        current: str | None = parent_id
        while current:
            if current == category_id:
                raise ValidationError("카테고리 계층에 순환이 생깁니다")
            if current in seen:
                break
            seen.add(current)
            row = await self.db.fetchone(
                "SELECT parent_id FROM category WHERE id = ? AND owner_id = ?",
                (current, owner_id),
            )
            current = row["parent_id"] if row else None

    async def _count_active_children(self, owner_id: str, category_id: str) -> int:
        row = await self.db.fetchone(
            """
            SELECT COUNT(*) AS cnt FROM category
            WHERE parent_id = ? AND owner_id = ? AND is_active = 1
            """,
            (category_id, owner_id),
        )
        return int(row["cnt"]) if row else 0
