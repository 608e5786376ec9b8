"""
Prompt Composer（确定性，不依赖 LLM）。

两种模式（顺序有意义）：
- instruction 里有 `{{patch}}` 占位符：原样替换，什么都不追加（高级模板自己控制位置）
- 没有占位符：在 instruction 后面追加固定结构的后缀（change 编号 + 代码内容）
"""

from __future__ import annotations

PATCH_PLACEHOLDER = "{{patch}}"


def compose_prompt(instruction: str, change_number: int, context: str) -> str:
    """
    组合最终发给模型的 prompt。

    - 占位符只替换第一次出现的位置
    - 相同输入永远得到相同输出
    """
    if PATCH_PLACEHOLDER in instruction:
        return instruction.replace(PATCH_PLACEHOLDER, context, 1)
    return (
        f"{instruction}\n\n"
        f"Context: This is a code review for change {change_number}.\n"
        f"Code Content:\n{context}"
    )
