"""Prompts for the reasoning service."""

import json
from typing import Any, Dict, List, Optional

CANDIDATE_SCHEMA_HINT = """Return a JSON object of the form:
{
  "candidates": [
    {
      "keyName": "A generic, descriptive name for the common key (e.g. 'User Email' or 'Product ID')",
      "confidenceScore": 0-100,
      "reasoning": "Why this key was chosen and how the columns match",
      "columnMappings": [{"fileName": "...", "columnName": "..."}],
      "potentialIssues": ["e.g. 'Data types might mismatch', 'Possible duplicates'"]
    }
  ]
}
Return only JSON, without markdown formatting."""

DEFAULT_MERGE_INSTRUCTIONS = """
1. Identify rows that refer to the SAME real-world entity using '{key_name}' as a guide.
2. Consolidate synonymous columns.
3. Resolve conflicts intelligently.
4. If a 1:N relationship exists, generate separate rows (denormalized).
"""

MERGE_OUTPUT_RULES = """CRITICAL OUTPUT RULES:
1. Return ONLY a JSON Array of objects. No markdown formatting.
2. EACH OBJECT must be FLAT.
   - CORRECT: { "ID": 1, "Name": "Alice", "Order_Item": "Apple" }
   - INCORRECT: { "ID": 1, "Name": "Alice", "Orders": ["Apple", "Banana"] }
   - INCORRECT: { "ID": 1, "Details": { "Age": 30 } }
3. All values MUST be primitives (string, number, boolean, or null). Do NOT use arrays or objects as values.
4. Do NOT output "orphan" text or error messages as rows. If a row cannot be merged, include it with nulls for missing columns.
5. Use a column named '_AI_Notes' for any comments, errors, or fuzzy match explanations."""


def _dump(data: Any) -> str:
    return json.dumps(data, indent=2, default=str, ensure_ascii=False)


def candidate_prompt(summaries: List[Dict[str, Any]]) -> str:
    return f"""You are a data integration expert. Analyze the following {len(summaries)} dataset summaries.
Your task is to identify potential common columns (keys) that could be used to JOIN these files together.

Consider:
1. Column names (fuzzy matching, synonyms like 'id', 'user_id', 'userId').
2. Data content samples (do they look like keys? e.g., emails, UUIDs, integer IDs).
3. Uniqueness and potential nulls.

Each candidate represents a potential join key strategy.
Order candidates by confidence score (highest first).

{CANDIDATE_SCHEMA_HINT}

Datasets:
{_dump(summaries)}
"""


def merge_plan_prompt(summaries: List[Dict[str, Any]], key_name: str) -> str:
    return f"""You are an expert Data Engineer planning a semantic merge of {len(summaries)} datasets.
Primary Join Key: {key_name}

Datasets:
{_dump(summaries)}

Task:
Draft a concise "Merge Execution Plan" for the user to review.

Include:
1. How you will match entities (fuzzy matching, strict matching, etc).
2. Which columns from different files are synonyms and will be merged into one (e.g. 'Cell' and 'Phone').
3. How you will handle conflicts (e.g. if File A says $50 and File B says $60).
4. How 1:N relationships (e.g. Customers -> Orders) will be structured (Denormalized/Repeated rows).

Keep it simple, clear, and editable. The user will read this and might change it to give you instructions.
Do not output JSON. Output plain text.
"""


def semantic_merge_prompt(
    samples: List[Dict[str, Any]],
    key_name: str,
    instructions: Optional[str] = None
) -> str:
    plan = instructions or DEFAULT_MERGE_INSTRUCTIONS.format(key_name=key_name)
    return f"""You are an expert Data Engineer performing a 'Semantic Merge' on {len(samples)} datasets.

Goal: Create a single, unified, FLAT dataset (array of objects).

User Plan / Instructions:
{plan}

{MERGE_OUTPUT_RULES}

Input Data:
{_dump(samples)}
"""


def chat_system_prompt(
    summary: Dict[str, Any],
    row_count: int,
    description: Optional[str],
    column_meanings: Dict[str, str]
) -> str:
    return f"""You are an expert Data Analyst AI. You are helping a user understand a specific dataset.

Dataset Metadata:
- Name: {summary['fileName']}
- Columns: {', '.join(summary['headers'])}
- Row Count: {row_count}
- Sample Data: {json.dumps(summary['sampleData'], default=str, ensure_ascii=False)}

User Provided Context (The user has told you this):
- Description: {description or 'None provided'}
- Column Meanings: {json.dumps(column_meanings, ensure_ascii=False)}

Your goal is to provide insights, answer questions, and identify trends.
If you are unsure about what a column means, ASK the user for clarification.
If the user provides a clarification (e.g., "Column X is the revenue"), acknowledge it and use it in future answers.

Be concise, professional, and helpful. Format your response in Markdown.
"""
