"""Prompt construction and response parsing for the external classifier."""

import re
import json
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Optional

from .rules import CategoryRules

logger = logging.getLogger(__name__)

# ```json ... ``` or ``` ... ``` around the whole response
_FENCE_RE = re.compile(r'^```[\w-]*\s*\n?(.*?)\n?\s*```$', re.DOTALL)


@dataclass
class ClassificationContext:
    """Expense details that help the classifier."""
    description: str
    amount: Optional[int] = None
    store_name: Optional[str] = None
    timestamp: Optional[datetime] = None
    ocr_text: Optional[str] = None


_FEW_SHOT_EXAMPLES = """\
入力: "ぬいぐるみ" → {"category":"娯楽","confidence":0.95,"reasoning":"おもちゃ・趣味用品"}
入力: "洗剤" → {"category":"日用品","confidence":0.95,"reasoning":"掃除用品"}
入力: "ランチ" → {"category":"食費","confidence":0.95,"reasoning":"食事"}
入力: "電車賃" → {"category":"交通費","confidence":0.95,"reasoning":"公共交通機関"}
入力: "Tシャツ" → {"category":"衣服","confidence":0.95,"reasoning":"衣類"}
入力: "映画チケット" → {"category":"娯楽","confidence":0.95,"reasoning":"エンターテイメント"}
入力: "風邪薬" → {"category":"医療・健康","confidence":0.95,"reasoning":"医薬品"}
入力: "携帯代" → {"category":"通信費","confidence":0.95,"reasoning":"通信サービス"}
入力: "電気代" → {"category":"光熱費","confidence":0.95,"reasoning":"公共料金"}
入力: "本" → {"category":"娯楽","confidence":0.90,"reasoning":"書籍・読み物"}"""

_CATEGORY_DEFINITIONS = """\
- 食費: 食事、飲食店、食材、飲み物など食べ物・飲み物関連
- 日用品: 洗剤、ティッシュ、シャンプー、掃除用品、トイレットペーパーなど生活必需品
- 交通費: 電車、バス、タクシー、ガソリン、駐車場など移動関連
- 娯楽: 映画、ゲーム、本、おもちゃ、ぬいぐるみ、漫画、趣味用品など娯楽・趣味関連
- 衣服: 服、靴、バッグ、アクセサリーなど衣類・ファッション関連
- 医療・健康: 病院、薬、サプリ、ジムなど健康・医療関連
- 通信費: スマホ、インターネット、Wi-Fi、電話代など通信サービス
- 光熱費: 電気、ガス、水道など公共料金
- その他: 上記に当てはまらないもの"""


def build_context_hints(context: ClassificationContext, rules: CategoryRules) -> List[str]:
    """Amount band, time of day and store name hints."""
    hints = []

    if context.amount is not None:
        for hint in rules.amount_hints:
            if hint.min_amount <= context.amount <= hint.max_amount:
                hints.append(f"- 金額¥{context.amount}は通常「{'、'.join(hint.categories)}」に多い金額帯")
                break

    if context.timestamp is not None:
        hour = context.timestamp.hour
        for hint in rules.time_hints:
            if hint.start_hour <= hour < hint.end_hour:
                hints.append(f"- {hour}時台の購入は「{'、'.join(hint.categories)}」の可能性が高い")
                break

    if context.store_name:
        for pattern, category in rules.store_category_patterns:
            if pattern.search(context.store_name):
                hints.append(f"- 店舗名「{context.store_name}」は通常「{category}」カテゴリ")
                break

    return hints


def build_classification_prompt(context: ClassificationContext,
                                category_names: List[str],
                                rules: CategoryRules) -> str:
    """
    Build the few-shot classification prompt.

    Args:
        context: Expense description and optional hints
        category_names: Categories the answer must be chosen from
        rules: Vocabulary with hint tables

    Returns:
        Prompt text
    """
    details = [f'- 説明: "{context.description}"']
    if context.amount is not None:
        details.append(f"- 金額: ¥{context.amount:,}")
    if context.store_name:
        details.append(f'- 店舗名: "{context.store_name}"')
    if context.timestamp is not None:
        details.append(f"- 購入時刻: {context.timestamp.strftime('%H:%M')}")
    if context.ocr_text:
        details.append(f'- OCR抽出テキスト: "{context.ocr_text[:200]}"')

    sections = [
        "あなたは家計簿の支出分類の専門家です。以下の支出内容を最も適切なカテゴリに正確に分類してください。",
        "## 利用可能なカテゴリ\n" + ", ".join(category_names),
        "## 分類例（Few-shot Examples）\n" + _FEW_SHOT_EXAMPLES,
        "## カテゴリの詳細定義\n" + _CATEGORY_DEFINITIONS,
        "## 分類する支出内容\n" + "\n".join(details),
    ]

    hints = build_context_hints(context, rules)
    if hints:
        sections.append("## 分類のヒント\n" + "\n".join(hints))

    sections.append(
        "## 出力形式\n"
        "必ずJSON形式のみで回答してください（他の説明文は不要）:\n"
        '{"category":"カテゴリ名","confidence":0.0-1.0,"reasoning":"分類理由",'
        '"suggestedCategories":[{"name":"代替カテゴリ","confidence":0.0-1.0}]}\n\n'
        "重要: categoryは必ず上記の利用可能なカテゴリリストから完全一致するものを選んでください。"
    )
    return "\n\n".join(sections)


def strip_code_fence(text: str) -> str:
    """Remove a Markdown code fence wrapping the whole text."""
    cleaned = text.strip()
    match = _FENCE_RE.match(cleaned)
    if match:
        return match.group(1).strip()
    return cleaned


def parse_classification_response(text: str) -> Dict[str, Any]:
    """
    Parse the model's JSON answer.

    Raises:
        ValueError: If the text is not a JSON object (json.JSONDecodeError included)
    """
    parsed = json.loads(strip_code_fence(text))
    if not isinstance(parsed, dict):
        raise ValueError(f"Expected a JSON object, got {type(parsed).__name__}")
    return parsed
