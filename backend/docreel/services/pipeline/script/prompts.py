"""
Prompt text for narration scripts.

``string.Template`` placeholders ($name) leave the literal JSON braces in the
prompt alone.
"""

from string import Template

SCRIPT_SYSTEM_INSTRUCTION = (
    "You write short scripts for a presenter speaking to camera. "
    "You always answer with a single JSON object and nothing else."
)

SCRIPT_REWRITE = Template("""
Rewrite this content into a natural, human-sounding video script.
Tone: warm and conversational, like an advisor speaking to a smart client.
Avoid jargon and sales-speak.

Content:
$content

Requirements:
- Break the script into 3-5 natural speaking segments
- Keep every segment under $max_chars characters
- Give the script a short title
- Suggest one camera or gesture direction for realism
- Suggest an environment setting for the shot

Answer with JSON in exactly this shape:
{"title": "...", "script_chunks": ["...", "..."], "camera_direction": "...", "environment": "..."}
""")


def build_script_prompt(content: str, max_chars: int) -> str:
    return SCRIPT_REWRITE.substitute(content=content.strip(), max_chars=max_chars).strip()
