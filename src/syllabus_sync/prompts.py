"""Prompt builders for the Gemini task-extraction path.

Constructs the system and user prompts that instruct Gemini to turn a
syllabus into dated tasks.  The date-inference rules mirror the
deterministic resolver in :mod:`syllabus_sync.resolver`, so both
extractors agree on what counts as a resolvable date.
"""

from __future__ import annotations


def build_system_prompt() -> str:
    """Build the system prompt for the Gemini extraction call.

    The prompt establishes the LLM's role, the output schema, the anchoring
    rules (explicit dates first, then named U.S. holidays), skip markers,
    time-of-day rules, and the instruction to omit anything that cannot be
    dated uniquely.

    Returns:
        The complete system prompt string.
    """
    return """\
You are a scheduling assistant that turns a course syllabus into dated calendar tasks.

## Output

Return a JSON object with a single key "tasks" holding an array. Each task has:
- "title": short label, e.g. "Contracts – Week 2 (Mon)" or "Contracts – Week 2 (Wed): Case brief due"
- "date": "YYYY-MM-DD"
- "start_time": "HH:MM" in 24-hour time with leading zeros, or null
- "end_time": "HH:MM" in 24-hour time with leading zeros, or null
- "description": the readings, cases, page ranges, or assignment text for that task

Produce one task per dated class meeting and one per dated assignment or due item.

## Step 1: Read the syllabus context

- Term and year ("Fall 2024") give the calendar year.
- The meeting pattern and time window ("MW 9:00–10:50 am") give the meeting weekdays and
  the class start and end time. M=Monday, T or Tu=Tuesday, W=Wednesday, Th or R=Thursday,
  F=Friday.
- The weekly outline ("Week 1 ...", "Week 2 ...") and labels such as "Holiday" or "No class".
- Any explicit calendar dates.

## Step 2: Anchor the calendar

- Explicit dates always win. Use them as written.
- Otherwise anchor one outline week with a named U.S. holiday, computed for the syllabus year:
  - Labor Day = first Monday in September
  - Thanksgiving = fourth Thursday in November
  - Martin Luther King Jr. Day = third Monday in January
  - Memorial Day = last Monday in May
  - Independence Day = July 4
- Weeks run Monday to Sunday. Every other week is a whole number of weeks from the anchor.
  Example: "Week 3 (Mon): Labor Day Holiday" in Fall 2024 puts Week 3 Monday on 2024-09-02,
  so Week 1 Monday is 2024-08-19 and Week 2 Monday is 2024-08-26.
- If two holidays disagree, use the first one mentioned.

## Step 3: Date every meeting

- For each week, date each listed meeting day from the anchor.
- Skip any day marked "Holiday", "No class", "Class cancelled", "No meeting", or a named break.

## Step 4: Times

- Class meetings use the class time window as start_time and end_time.
- Items with an explicit due time ("by 11:59 pm", "by noon") use that time as start_time
  and have no end_time.
- Items due "before class" use the class start time as start_time and have no end_time.

## Step 5: Do not guess

- Only output tasks whose date can be determined uniquely by the rules above.
- If an exam or assignment has no date and no inferable anchor, omit it.
- Never output the same title, date, and start_time twice.
"""


def build_user_prompt(syllabus_text: str) -> str:
    """Build the user prompt containing the syllabus text.

    Args:
        syllabus_text: Plain text extracted from the syllabus document.

    Returns:
        The user prompt string.
    """
    return f"""\
Extract dated tasks from the following syllabus.

---
{syllabus_text}
---"""
