"""Prompt templates for credential document analysis.

The analysis model reads an uploaded academic credential (image or PDF),
extracts the candidate details printed on it and rates legibility and
authenticity. Output is structured JSON constrained by
CREDENTIAL_ANALYSIS_SCHEMA so the response can be validated directly into
an AIAnalysisResult.

The routing decision itself (pass / needs review) is rule-based and lives
in the analysis gate, not in the prompt.
"""

CREDENTIAL_ANALYSIS_PROMPT = '''Analyze this academic credential.

Extract the student name, institution, degree and graduation date exactly as
printed on the document.

Then assess whether it looks authentic or if there are signs of tampering,
such as mismatched fonts, misaligned text, inconsistent seals or signatures,
or digital artifacts around names and dates.

Rate your confidence in the legibility and authenticity of the document as a
number between 0 and 100.

Return the result in JSON.'''


CREDENTIAL_ANALYSIS_SCHEMA = {
    "type": "OBJECT",
    "properties": {
        "extracted_name": {
            "type": "STRING",
            "description": "The name of the student found on the document",
        },
        "extracted_institution": {
            "type": "STRING",
            "description": "The name of the university or institution",
        },
        "extracted_degree": {
            "type": "STRING",
            "description": "The degree title (e.g., Bachelor of Science)",
        },
        "extracted_date": {
            "type": "STRING",
            "description": "Graduation date or year found",
        },
        "confidence_score": {
            "type": "NUMBER",
            "description": "Confidence score between 0 and 100 regarding legibility and authenticity",
        },
        "authenticity_notes": {
            "type": "STRING",
            "description": "Brief notes on whether the document looks like a standard academic certificate",
        },
        "is_tampered": {
            "type": "BOOLEAN",
            "description": "Whether there are obvious signs of digital editing or tampering",
        },
    },
    "required": [
        "extracted_name",
        "extracted_institution",
        "extracted_degree",
        "confidence_score",
        "is_tampered",
    ],
}
