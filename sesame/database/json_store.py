from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any, Optional

logger = logging.getLogger(__name__)


class JsonStore:
    """
    简单的 JSON 键值存储层：
    - 每个 key 对应 save_path 下的一个 <key>.json 文件
    - load：读取整个值；文件不存在或损坏 → 返回 None
    - save：整体覆盖写入（先写临时文件，再原子替换）
    """

    def __init__(self, save_path: str):
        self.save_path = Path(save_path)
        self.save_path.mkdir(parents=True, exist_ok=True)

    def path_for(self, key: str) -> Path:
        return self.save_path / f"{key}.json"

    def load(self, key: str) -> Optional[Any]:
        path = self.path_for(key)
        if not path.exists():
            return None

        try:
            with path.open("r", encoding="utf-8") as f:
                return json.load(f)
        except (json.JSONDecodeError, UnicodeDecodeError, OSError) as e:
            logger.warning(f"⚠️ Failed to load {path}: {e}")
            return None

    def save(self, key: str, data: Any) -> None:
        path = self.path_for(key)
        tmp_path = path.with_suffix(f"{path.suffix}.tmp")

        try:
            with tmp_path.open("w", encoding="utf-8") as f:
                json.dump(data, f, ensure_ascii=False, indent=2)
            os.replace(tmp_path, path)
        finally:
            # 写入失败时不留下半截临时文件；原文件保持不变
            tmp_path.unlink(missing_ok=True)
