"""
Prompts for topic-based generation.
"""

from __future__ import annotations

from .models import ExamRequest, PracticeRequest, TopicOptimizationRequest

# Question types that may carry an illustration when the scenario needs one
ILLUSTRATED_TYPES = ("calculation", "application", "short_answer")

IMAGE_STYLE_PREFIX = (
    "Create a simple, black and white line drawing for a school test. "
    "White background. Clear lines. No text labels. Subject: "
)


def build_exam_prompt(request: ExamRequest) -> str:
    """Prompt for a complete exam paper."""
    return f"""你是一位专业的中国{request.level}老师。请根据以下要求生成一份完整的试卷：
1. 年级：{request.grade_spec}
2. 科目：{request.subject}
3. 考试考察的知识点描述：{request.topic_description}
4. 难度：{request.difficulty.label}

试卷结构要求：
- 试卷需要足够丰富，题目数量合理（选择题/判断题 10+, 填空题 5+, 大题 3-5）。
- 包含题型：选择题、判断题(judgment)、填空题、简答题、计算题、应用题。

**关于图片的严格规则**:
- **禁止** 为 选择题、填空题、判断题 生成图片描述。这些题型必须是纯文本。
- **仅限** 在 应用题、计算题、简答题 中，且确实需要几何图形、物理电路图或特定场景示意图辅助解题时，才生成 textDiagram (ASCII ART)。
- 禁止生成 imagePrompt。

内容必须是中文。格式要正式。
"""


def practice_instructions(question_type: str) -> tuple[str, str]:
    """
    Type and image instructions for a practice set.

    Returns:
        (type instruction, image instruction)
    """
    if question_type == "geometry":
        return (
            "生成 几何/图形题。通常归类为 calculation 或 short_answer。重点是必须包含几何图形描述。",
            "每道题都必须生成 imagePrompt 来描述几何图形 (e.g. triangle, circle, angles)。",
        )

    type_instruction = f"生成 {question_type} (QuestionType 对应值) 类型题目。"
    if question_type == "calculation":
        type_instruction += " 必须是纯计算题 (例如 '1+1=?', '解方程', '求导')。禁止生成应用题、文字题或情景题。"

    if question_type in ILLUSTRATED_TYPES:
        image_instruction = "如果有必要（如物理场景、几何），可以生成 imagePrompt。否则留空。"
    else:
        image_instruction = "禁止生成 imagePrompt。"

    return type_instruction, image_instruction


def build_practice_prompt(request: PracticeRequest) -> str:
    """Prompt for a single-section practice set."""
    type_instruction, image_instruction = practice_instructions(request.question_type)
    return f"""你是一位专业的中国{request.level}老师。请根据以下要求生成一份**专项练习**试卷：
1. 年级：{request.grade_spec}
2. 科目：{request.subject}
3. 专项类型：{request.question_type}
4. 考点/知识点：{request.topic_description}
5. 题目数量：约 {request.count} 题

要求：
- 试卷只包含一个大题（Section）。
- {type_instruction}
- {image_instruction}
- 题目内容必须是中文。
- 格式要正式。
- 如果是计算题，请确保数字合理。
- 如果是应用题，情境要贴近生活。
"""


def build_topic_prompt(request: TopicOptimizationRequest) -> str:
    """Prompt for rewriting a topic description."""
    return f"""User input: "{request.raw_input}"
Context: Grade {request.grade}, Subject {request.subject}.

Task: The user is a teacher describing topics for an exam. Rewrite the user's input to be more professional, detailed, and clear.
Expand on implied concepts suitable for this grade level.
Keep it concise (under 80 words) but professional.
Output ONLY the rewritten text in Chinese.
"""
