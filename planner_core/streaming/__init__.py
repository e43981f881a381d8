"""流式响应解析层。

- decoder: 字节块增量解码。
- parser: 切分 `data:` 行并识别 `[DONE]`。
- accumulator: 解析 JSON 增量并累加文本。
"""

from planner_core.streaming.accumulator import DeltaAccumulator
from planner_core.streaming.decoder import ChunkDecoder
from planner_core.streaming.parser import DATA_PREFIX, DONE_SENTINEL, EventLineParser

__all__ = [
    "ChunkDecoder",
    "DeltaAccumulator",
    "EventLineParser",
    "DATA_PREFIX",
    "DONE_SENTINEL",
]
