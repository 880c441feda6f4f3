"""Content corpus builder.

Normalizes an analysis input into one lower-cased search blob plus the
list of file names. Every downstream matcher reads from the corpus.
"""

from .schema import AnalysisInput, ContentCorpus, InputSummary, InputType


def build_corpus(analysis_input: AnalysisInput) -> ContentCorpus:
    """Build the searchable corpus for an analysis input."""
    parts = []
    if analysis_input.description:
        parts.append(analysis_input.description)
    parts.extend(f.content for f in analysis_input.files)

    return ContentCorpus(
        text=" ".join(parts).lower(),
        file_names=[f.name for f in analysis_input.files],
        files=list(analysis_input.files),
    )


def summarize_input(analysis_input: AnalysisInput) -> InputSummary:
    """Describe the kind of input an analysis ran on."""
    has_description = bool(analysis_input.description and analysis_input.description.strip())
    if analysis_input.files:
        input_type = InputType.CODE_UPLOAD
    elif has_description:
        input_type = InputType.DESCRIPTION
    else:
        input_type = InputType.EMPTY

    return InputSummary(
        input_type=input_type,
        file_count=len(analysis_input.files),
        has_description=has_description,
    )
