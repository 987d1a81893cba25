ANALYST_SYSTEM_PROMPT = (
    "You are a regulatory compliance analyst. Write without numbered enumerations "
    "or lists, in a clear and professional tone."
)

# Remediation guidance opening each TODO action, keyed by regulation
REGULATION_ACTIONS = {
    "GDPR": (
        "Review legal bases, policies, data subject rights and evidence; "
        "strengthen security and traceability. "
    ),
    "NIS2": (
        "Improve risk management, technical and operational controls and "
        "incident response. "
    ),
    "DORA": (
        "Align ICT governance, operational resilience and critical third parties "
        "with DORA requirements. "
    ),
    "ENS": (
        "Consolidate the ENS security management framework, apply measures per "
        "category level and reinforce continuity. "
    ),
}

DEFAULT_ACTION = "Implement controls and evidence proportional to the risk. "

ACTION_TEMPLATE = (
    "{prefix}Affected area: {block} - {question}. "
    "Define owners, evidence and metrics; 30/60/90-day plan."
)

PROMPT_CONTEXT_HEADER = "Analysis context (anonymized company):"
PROMPT_SCORES_HEADER = "Computed compliance metrics (0-100%):"
PROMPT_ANSWERS_HEADER = "Questionnaire (id => normalized answer):"
PROMPT_INSTRUCTIONS = (
    "Instructions:\n"
    "Write a technical yet accessible analysis, without numbered enumerations or lists. "
    "Summarize the key risks per regulation, their likely causes and the areas for "
    "improvement. Conclude with practical, prioritized recommendations in flowing prose."
)

# Report fallbacks for the analysis section
ANALYSIS_DISABLED = "AI analysis was not run."
ANALYSIS_BLOCKED = (
    "Possible personal data detected (patterns: {patterns}); "
    "the request to the AI provider was skipped."
)
ANALYSIS_UNAVAILABLE = "AI analysis unavailable: {reason}"
