"""
Rewrite prompt construction
"""

PROMPT_TEMPLATE = (
    'Take the following lyrics from the song "{title}" by {artist} and rewrite them '
    'in the theme of "{theme}".\n'
    'Do not worry about being family friendly, you can be explicit and inappropriate '
    'if it makes sense. Focus on inserting puns and being clever. You MUST ALWAYS match '
    'the rhythm, syllable count, and rhyme structure exactly with the original lyrics.\n'
    'Do not explain your answer or include any commentary. Just return the rewritten lyrics.\n'
    '\n'
    'Original lyrics:\n'
    '{lyrics}'
)


def build_prompt(title: str, artist: str, theme: str, lyrics: str) -> str:
    """
    Fill the rewrite template

    Title and artist should already be normalized. The theme is inserted
    verbatim and the lyrics go last, unmodified.
    """
    return PROMPT_TEMPLATE.format(title=title, artist=artist, theme=theme, lyrics=lyrics)
