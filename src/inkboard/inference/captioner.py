"""Shot captioning against an OpenAI-compatible chat-completions server.

``CaptionClient.caption()`` raises ``CaptionError`` for any single-frame
failure; ``run_caption_pool()`` absorbs those per item, storing the
``CAPTION_FAILED`` placeholder so one bad frame never aborts the batch.
"""

from __future__ import annotations

import base64
import logging
import os
from concurrent.futures import ThreadPoolExecutor, as_completed
from pathlib import Path
from typing import Callable, Sequence

import requests

from inkboard.errors import CaptionError, InkboardError
from inkboard.imaging.codec import encode_jpeg, load_rgba, resize_rgba
from inkboard.models import KeyframeList

logger = logging.getLogger(__name__)

DEFAULT_CAPTION_URL = "http://127.0.0.1:8089"
CAPTION_WORKERS = 5
CAPTION_MAX_WIDTH = 512
CAPTION_FAILED = "..."
CAPTION_UNRECOGNISED = "无法识别"

CAPTION_PROMPT = """请作为一名专业分镜师对这张视频画面进行反推分析。
请严格按照以下格式输出一段描述：

[角度，景别，构图，画面内容]

要求：
1. **角度**：准确判断拍摄角度（如平视、仰拍、俯拍、上帝视角等）。
2. **景别**：准确判断镜头距离（如特写、近景、中景、全景、远景）。
3. **构图**：分析画面构图方式（如居中构图、三分法、对角线、框架式等）。
4. **画面内容**：
   - **务必精简**：只描述“哪里”和“发生了什么”。
   - **禁止描述色彩与画质**：不要提及颜色、光影对比、滤镜效果或“电影质感”等修饰语。
   - 专注于场景结构和人物的具体动作/神态。
5. **音频/旁白**：
   - 仅当画面有**可见字幕**时，提取并标注为“字幕/台词”。
   - 若无字幕，**绝对不要**编造对话。

示例格式：
[俯拍，全景，对角线构图，繁忙十字路口，行人匆匆穿过斑马线。]
或
[平视，特写，中心构图，主角盯着屏幕，眼神惊讶。字幕：“不可能...”]"""


def get_caption_url() -> str:
    """Return the chat-completions base URL (``INKBOARD_CAPTION_URL`` or local default)."""
    return os.environ.get("INKBOARD_CAPTION_URL", DEFAULT_CAPTION_URL).rstrip("/")


def image_data_uri(image_path: Path, max_width: int = CAPTION_MAX_WIDTH) -> str:
    """Return a JPEG data URI of *image_path*, downscaled to at most *max_width*."""
    rgba = load_rgba(image_path)
    height, width = rgba.shape[:2]
    if width > max_width:
        rgba = resize_rgba(rgba, max_width, max(1, round(height * max_width / width)))
    b64 = base64.b64encode(encode_jpeg(rgba, 80, image_path)).decode("ascii")
    return f"data:image/jpeg;base64,{b64}"


class CaptionClient:
    """Thin ``requests`` client for one captioning endpoint.

    Usage::

        client = CaptionClient()
        text = client.caption(Path("frame_0000000000.jpg"))

    """

    def __init__(
        self,
        base_url: str | None = None,
        model: str | None = None,
        api_key: str | None = None,
        timeout_s: float = 60.0,
    ) -> None:
        self.base_url = (base_url or get_caption_url()).rstrip("/")
        self.model = model or os.environ.get("INKBOARD_CAPTION_MODEL", "")
        self.api_key = api_key if api_key is not None else os.environ.get("INKBOARD_API_KEY", "")
        self.timeout_s = timeout_s

    def _headers(self) -> dict:
        if not self.api_key:
            return {}
        return {"Authorization": f"Bearer {self.api_key}"}

    def caption(self, image_path: Path) -> str:
        """Describe one frame. Raises CaptionError on any transport or shape failure."""
        try:
            data_uri = image_data_uri(image_path)
        except InkboardError as exc:
            raise CaptionError(f"Cannot prepare image {image_path.name}: {exc}") from exc

        payload = {
            "temperature": 0.2,
            "max_tokens": 256,
            "messages": [{
                "role": "user",
                "content": [
                    {"type": "image_url", "image_url": {"url": data_uri}},
                    {"type": "text", "text": CAPTION_PROMPT},
                ],
            }],
        }
        if self.model:
            payload["model"] = self.model

        try:
            r = requests.post(
                f"{self.base_url}/v1/chat/completions",
                json=payload,
                headers=self._headers(),
                timeout=self.timeout_s,
            )
            r.raise_for_status()
            content = r.json()["choices"][0]["message"]["content"]
        except requests.RequestException as exc:
            raise CaptionError(str(exc)) from exc
        except (KeyError, IndexError, TypeError, ValueError) as exc:
            raise CaptionError(f"Unexpected response shape: {exc!r}") from exc

        text = (content or "").strip()
        return text or CAPTION_UNRECOGNISED


def run_caption_pool(
    keyframes: KeyframeList,
    client: CaptionClient,
    workers: int = CAPTION_WORKERS,
    progress_callback: Callable[[int, int], None] | None = None,
    indices: Sequence[int] | None = None,
) -> int:
    """Caption every keyframe whose caption is still unset.

    When *indices* is given, exactly those slots are captioned, replacing
    any caption they already hold.

    Frames are described from their *original* capture.  Each index is
    submitted exactly once; a ``CaptionError`` stores ``CAPTION_FAILED`` in
    that slot and the pool carries on.  No retries.

    Returns the number of frames captioned successfully.
    """
    pending = keyframes.uncaptioned() if indices is None else list(dict.fromkeys(indices))
    if not pending:
        return 0

    succeeded = 0
    completed = 0
    total = len(pending)
    with ThreadPoolExecutor(max_workers=min(workers, total)) as executor:
        future_to_index = {
            executor.submit(client.caption, Path(keyframes[i].original_path)): i
            for i in pending
        }
        for future in as_completed(future_to_index):
            index = future_to_index[future]
            try:
                caption = future.result()
            except CaptionError as exc:
                logger.warning("Captioning failed for %s: %s", keyframes[index].id, exc.detail)
                keyframes.set_caption(index, CAPTION_FAILED)
            else:
                keyframes.set_caption(index, caption)
                succeeded += 1
            completed += 1
            if progress_callback is not None:
                progress_callback(completed, total)

    logger.info("Captioned %d of %d frames (%d failed)", succeeded, total, total - succeeded)
    return succeeded
