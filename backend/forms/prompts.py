"""Fixed instruction sent with every form extraction request."""

from backend.forms.fields import FieldType

FORM_EXTRACTION_PROMPT_TEMPLATE = """
Analyze the provided image of a form and extract its fields. Return the output as a valid JSON array.
Each object in the array should represent a single form field and have the following properties:
- "fieldName": A camelCase string derived from the label, to be used as a key in a database (e.g., "fullName", "emailAddress").
- "label": The human-readable label of the form field as it appears on the form (e.g., "Full Name", "Email Address").
- "type": The most appropriate input type for the field. Supported types are: {field_types}.

Use "boolean" for checkboxes and "select" for dropdowns or radio buttons.
List the fields in the order they appear on the form.

Example output:
[
  {{ "fieldName": "fullName", "label": "Full Name", "type": "text" }},
  {{ "fieldName": "dateOfBirth", "label": "Date of Birth", "type": "date" }},
  {{ "fieldName": "hasInsurance", "label": "Do you have insurance?", "type": "boolean" }}
]
"""


def build_form_extraction_prompt() -> str:
    """Render the extraction prompt with the supported field types listed."""
    field_types = ", ".join(f'"{t.value}"' for t in FieldType)
    return FORM_EXTRACTION_PROMPT_TEMPLATE.format(field_types=field_types)


FORM_EXTRACTION_PROMPT = build_form_extraction_prompt()
