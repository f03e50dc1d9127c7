from __future__ import annotations

from typing import Optional

LESSON_SYSTEM_PROMPT = "You are an expert educational tutor."
QUIZ_SYSTEM_PROMPT = "You are an expert at creating educational assessments."
WALKTHROUGH_SYSTEM_PROMPT = "You are a patient tutor helping students learn from mistakes."

QUIZ_QUESTION_COUNT = 5


def lesson_prompt(topic: str, difficulty: str, user_level: Optional[str] = None) -> str:
    background = f"Student background: {user_level}\n" if user_level else ""
    return (
        f'You are a friendly and knowledgeable tutor. Create a comprehensive lesson on "{topic}" '
        f"at {difficulty} level.\n\n"
        f"{background}"
        "\nPlease provide:\n"
        "1. A clear, engaging explanation of the topic\n"
        "2. 3-4 key points to remember\n"
        "3. 2-3 practical examples\n"
        "4. Use markdown formatting for better readability\n"
        "5. Include mathematical expressions using LaTeX notation when relevant "
        "(wrap in $ for inline or $$ for block)\n\n"
        "Format your response as a JSON object with the following structure:\n"
        "{\n"
        '  "title": "lesson title",\n'
        '  "content": "main lesson content in markdown",\n'
        '  "keyPoints": ["point 1", "point 2", "point 3"],\n'
        '  "examples": ["example 1", "example 2"]\n'
        "}"
    )


def quiz_prompt(topic: str, difficulty: str, lesson_content: str) -> str:
    return (
        f'Based on this lesson about "{topic}":\n\n'
        f"{lesson_content}\n\n"
        f"Create {QUIZ_QUESTION_COUNT} multiple-choice questions at {difficulty} level. "
        "Each question should:\n"
        "1. Test understanding of key concepts\n"
        "2. Have 4 options\n"
        "3. Include a detailed explanation for the correct answer\n"
        "4. Be appropriately challenging for the difficulty level\n\n"
        "The correctAnswer field is the zero-based index of the correct option.\n\n"
        "Format as JSON array:\n"
        "[\n"
        "  {\n"
        '    "id": "q1",\n'
        '    "question": "question text",\n'
        '    "options": ["option A", "option B", "option C", "option D"],\n'
        '    "correctAnswer": 0,\n'
        '    "explanation": "detailed explanation of why this is correct"\n'
        "  }\n"
        "]"
    )


def walkthrough_prompt(question: str, user_answer: str, correct_answer: str, topic: str) -> str:
    return (
        f'A student answered "{user_answer}" to this question: "{question}"\n\n'
        f'The correct answer is: "{correct_answer}"\n\n'
        f"Topic: {topic}\n\n"
        "Create a step-by-step walkthrough to help the student understand:\n"
        "1. Why their answer was incorrect\n"
        "2. The correct approach to solving this problem\n"
        "3. Key concepts they should remember\n\n"
        "Format as JSON array with 3-4 steps:\n"
        "[\n"
        "  {\n"
        '    "id": "step1",\n'
        '    "title": "Understanding the Problem",\n'
        '    "content": "step content",\n'
        '    "explanation": "why this step is important"\n'
        "  }\n"
        "]"
    )
