"""
Prompts for turning raw exam text into the structured document.
"""

from __future__ import annotations

import json

from exampress.domains.exam import EXAM_RESPONSE_SCHEMA

FORMAT_PROMPT = '''You are an expert exam formatter. I will provide raw text extracted from a document.
Your task is to:
1. Identify the exam structure (Title, Subject, Grade).
2. Extract all questions.
3. Classify Question Types CAREFULLY:
   - 'calculation': STRICTLY for pure mathematical expressions (e.g., "1+1=", "2x+3=7"). NO word problems here.
   - 'essay': Use this for "Application Questions", "Word Problems", or any question dealing with real-world scenarios, even if it involves calculation.
   - 'fill_in_blank', 'multiple_choice', 'judgment', 'short_answer' as usual.
4. FIX FORMATTING:
   - Ensure fill-in-the-blank brackets are standardized (e.g., "(       )" with enough space).
   - Ensure options for multiple choice are correctly identified and listed WITHOUT the letter prefix.
   - If a single question number contains multiple short calculations (e.g., "1. 9+4=  12-3= ..."), split them into separate questions with their own ids, or keep them as one question with the calculations separated by newlines in the 'text' field.
5. Section titles contain only the question category, without numbering (e.g. '选择题', not '一、选择题').
6. Structure the output into the specified JSON format.

Raw Text:
"""
{source}
"""
'''

PARSE_PROMPT = """你是一位专业的试卷分析助手。请仔细分析以下试题文本，并将其整理为结构化的试卷格式。

# 试题文本
{source}

# 解析要求

1. **试卷基本信息**：
   - 从文本中提取试卷标题（如果有）
   - 识别科目和年级信息（如果有提及）
   - 如果文本中没有标题，则根据内容生成合适的标题
   - 根据题目数量和难度估算合理的考试时间（建议：选择题1分钟/题，填空题2分钟/题，解答题5-8分钟/题）
   - 计算总分

2. **题型识别**：
   - **选择题** (multiple_choice)：有 A、B、C、D 等选项的题目
   - **判断题** (judgment)：需要判断对错的题目，通常有括号（ ）
   - **填空题** (fill_in_blank)：有下划线 ___ 或括号（ ）需要填写的题目
   - **简答题** (short_answer)：需要简短文字回答的题目
   - **计算题** (calculation)：需要进行数学运算的题目
   - **解答题/应用题** (essay)：需要详细解答或论述的题目

3. **题目结构**：
   - 保留原题号顺序
   - 提取题目文本（不包括题号）
   - 提取选项（如适用）
   - 根据题型分配合理的分值（如果原文没有提供）：
     * 选择题/判断题：2-3分
     * 填空题：2-4分
     * 计算题/简答题：4-6分
     * 解答题/应用题：6-10分
   - 设置合理的答题空行数 (answerSpaceLines)：
     * 选择题/判断题/填空题：0行
     * 计算题/简答题：3-5行
     * 解答题/应用题：5-8行

4. **分组规则**：
   - 按照原文的大题分组（一、二、三、四...）
   - 每个大题一个 section
   - section 的 title 只包含题型名称，不要数字编号

5. **答案处理**：
   - 如果原文包含参考答案，请忽略答案部分，只提取题目

请严格按照提供的 JSON Schema 格式输出。
"""

CHAT_SYSTEM_MESSAGE = (
    "You are an exam formatting assistant. Reply with ONE JSON object and nothing else. "
    "It must follow this JSON schema (types are given in upper case):\n"
    + json.dumps(EXAM_RESPONSE_SCHEMA, ensure_ascii=False)
)


def build_format_prompt(source: str) -> str:
    """Prompt for text extracted from an uploaded document."""
    return FORMAT_PROMPT.format(source=source)


def build_parse_prompt(source: str) -> str:
    """Prompt for pasted exam text."""
    return PARSE_PROMPT.format(source=source)
