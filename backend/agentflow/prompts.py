"""Prompt templates and the pure builders that turn a form into chat requests.

Two variants are supported:

* ``basic`` sends one aggregated prompt and expects a JSON object back with
  one key per section. The lead section follows the form's toggle.
* ``extended`` sends one prompt per section, concurrently, all sharing a base
  context message. The lead section is only requested when the main goal
  reads as sales-oriented (see ``IntentClassifier``).
"""

from types import MappingProxyType
from typing import Dict, Iterable, Mapping, Optional, Protocol

from .schemas import FormPayload

CONFIG_TEMPERATURE = 0.2
SUMMARY_TEMPERATURE = 0.3

SECTIONS = ("main", "tone", "intro", "guardrails", "lead", "exit")
BASIC_SECTIONS = ("main", "tone", "guardrails", "lead", "exit")

LEAD_DISABLED_MARKER = "Hot lead criteria: disabled by user toggle."
LEAD_NOT_APPLICABLE = "Lead scoring is not applicable for this use case."

BASIC_RESPONSE_KEYS = {
    "main": "main_instruction",
    "tone": "message_tone",
    "guardrails": "guardrails",
    "lead": "hot_lead_criteria",
    "exit": "exit_conditions",
}

SALES_KEYWORDS = (
    "sale",
    "sales",
    "lead",
    "pipeline",
    "deal",
    "book a demo",
    "demo",
    "quote",
    "pricing",
    "prospect",
    "opportunity",
)

DEFAULT_TEMPLATES: Dict[str, str] = {
    "main_goal": "\n".join(
        [
            "MAIN INSTRUCTION: Define AgentFlow's core guidance (role, goal, persona) tailored to the provided industry and main goal.",
            "Deliver concise bullets for:",
            "- Role & Goal: What AgentFlow must do for this industry/use case (e.g., \"You are a customer support agent for <industry> helping with <goal>\").",
            "- Interaction type: Channel/format (e.g., chatbot, outbound campaign, onboarding, survey).",
            "- KPI/outcome: One or two measurable targets (e.g., lead conversion %, response rate, setup completion).",
            "- Persona: Tone/personality (e.g., \"Friendly, professional, patient; sparing use of emojis\").",
            "Ground everything in the user's industry + main goal; avoid generic language; total under ~80 words.",
        ]
    ),
    "lead_criteria": "\n".join(
        [
            "LEAD SCORING (SALES ONLY): Generate multiple weighted criteria applicable to sales.",
            "Format each criterion exactly as:",
            "Lead score weight: {{0-100%}}",
            "Criteria: {{generated output}}",
            "All lead score weights must sum to 100% in total.",
            "Base the criteria on the user input and industry context.",
        ]
    ),
    "guardrails": "\n".join(
        [
            "GUARDRAILS: Tailor to the provided guardrails and industry (especially regulated).",
            "For each guardrail, use the format:",
            "Observe for: {{generated situation}}",
            "How to react: {{how an AI Agent should react to the situation}}",
            "Provide multiple guardrails if appropriate",
        ]
    ),
    "exit_conditions": "\n".join(
        [
            "EXIT CONDITIONS: Define how and when the AI Agent should end or hand over to a human.",
            "For each condition, use the format:",
            "Condition name: {{generated name}}",
            "Condition type: strictly one of (\"exit based on message signal\", \"exit when media file is encountered\", \"exit based on lead score - only for sales use case\")",
            "Exit condition: {{generated scenario to exit}}",
            "Provide multiple exit conditions if appropriate.",
        ]
    ),
    "tone": "\n".join(
        [
            "MESSAGE TONE OF VOICE: Use the user-provided tone, industry, and main goal to create guidance in this exact format:",
            "#Tone: {{tone guidance}}",
            "#Format: {{format guidance}}",
            "#Goal: {{message goal}}",
            "#Content: {{content boundaries}}",
        ]
    ),
    "intro": "\n".join(
        [
            "INTRO MESSAGE: Write the first message the AI Agent sends when a conversation starts.",
            "Use the format:",
            "Greeting: {{one-sentence greeting that names the business}}",
            "Purpose: {{one sentence on how the agent can help, tied to the main goal}}",
            "Opening question: {{one question that moves the user toward the main goal}}",
            "Keep it under ~50 words and match the requested tone of voice.",
        ]
    ),
    "site_summary": (
        "Summarize the business website content in <=120 words. Focus on products/services, "
        "target audience, regions served, and value proposition. Avoid fluff and ignore navigation/footer text."
    ),
    "business_name": (
        "Identify the business behind the website URL. "
        "Reply with the name only: no quotes, no punctuation, no explanation."
    ),
}

SECTION_TEMPLATES = {
    "main": "main_goal",
    "tone": "tone",
    "intro": "intro",
    "guardrails": "guardrails",
    "lead": "lead_criteria",
    "exit": "exit_conditions",
}


class IntentClassifier(Protocol):
    def is_sales(self, goal: str) -> bool: ...


class KeywordIntentClassifier:
    """Flags a goal as sales-oriented when it mentions any of ``keywords``."""

    def __init__(self, keywords: Iterable[str] = SALES_KEYWORDS):
        self.keywords = tuple(k.lower() for k in keywords)

    def is_sales(self, goal: str) -> bool:
        text = (goal or "").lower()
        return any(keyword in text for keyword in self.keywords)


def build_template_set(overrides: Optional[dict] = None) -> Mapping[str, str]:
    """Merge ``templates:`` overrides from prompts.yml onto the defaults and freeze the result."""
    templates = dict(DEFAULT_TEMPLATES)
    for name, text in ((overrides or {}).get("templates") or {}).items():
        if name in templates and isinstance(text, str) and text.strip():
            templates[name] = text.strip()
    return MappingProxyType(templates)


def chat_request(*, model: str, system: str, user: str, temperature: float = CONFIG_TEMPERATURE) -> dict:
    return {
        "model": model,
        "temperature": temperature,
        "messages": [
            {"role": "system", "content": system},
            {"role": "user", "content": user},
        ],
    }


def build_basic_request(form: FormPayload, templates: Mapping[str, str], *, model: str) -> dict:
    system = "\n".join(
        [
            f"You are composing an AgentFlow spec for {form.industry or 'an unspecified industry'}.",
            f"Adopt this tone: {form.tone_of_voice or 'neutral'}.",
            f"Guardrails: {form.guardrails or 'None provided.'}",
        ]
    )
    lead_block = (
        f"{templates['lead_criteria']}\n{form.lead_score or 'N/A'}" if form.lead_enabled else LEAD_DISABLED_MARKER
    )
    user = "\n\n".join(
        [
            f"{templates['main_goal']}\n{form.main_goal or 'N/A'}",
            lead_block,
            f"{templates['guardrails']}\n{form.guardrails or 'N/A'}",
            f"{templates['exit_conditions']}\n{form.exit_conditions or 'N/A'}",
            f"Industry context: {form.industry or 'N/A'}",
            f"Preferred tone of voice: {form.tone_of_voice or 'N/A'}",
            templates["tone"],
            "Respond ONLY as JSON with keys: "
            + ", ".join(BASIC_RESPONSE_KEYS.values())
            + ". No markdown, no prose outside JSON.",
        ]
    )
    return chat_request(model=model, system=system, user=user)


def build_base_context(form: FormPayload, *, business_name: str = "", summary: str = "") -> str:
    lines = [
        "You are composing one section of an AgentFlow spec: the configuration of an AI Agent for a business.",
        f"Industry: {form.industry or 'N/A'}",
        f"Main goal: {form.main_goal or 'N/A'}",
        f"Preferred tone of voice: {form.tone_of_voice or 'N/A'}",
        f"Guardrails provided by the user: {form.guardrails or 'None provided.'}",
        f"Exit conditions provided by the user: {form.exit_conditions or 'None provided.'}",
    ]
    if business_name:
        lines.append(f"Business name: {business_name}")
    if summary:
        lines.append(f"Business summary: {summary}")
    lines.append("Return plain text only, following the requested format exactly. No markdown fences.")
    return "\n".join(lines)


def _section_input(section: str, form: FormPayload, business_name: str) -> str:
    if section == "main":
        return form.main_goal
    if section == "tone":
        return form.tone_of_voice
    if section == "intro":
        return business_name or form.business_url
    if section == "guardrails":
        return form.guardrails
    if section == "lead":
        return form.lead_score or form.main_goal
    return form.exit_conditions


def build_section_requests(
    form: FormPayload,
    templates: Mapping[str, str],
    *,
    model: str,
    classifier: IntentClassifier,
    business_name: str = "",
    summary: str = "",
) -> Dict[str, dict]:
    """One request per section; ``lead`` is left out when the goal is not sales-oriented."""
    system = build_base_context(form, business_name=business_name, summary=summary)
    requests = {}
    for section in SECTIONS:
        if section == "lead" and not classifier.is_sales(form.main_goal):
            continue
        template = templates[SECTION_TEMPLATES[section]]
        user = f"{template}\n{_section_input(section, form, business_name) or 'N/A'}"
        requests[section] = chat_request(model=model, system=system, user=user)
    return requests


def build_summary_request(text: str, templates: Mapping[str, str], *, model: str) -> dict:
    return chat_request(
        model=model,
        system=templates["site_summary"],
        user=text or "No content found.",
        temperature=SUMMARY_TEMPERATURE,
    )


def build_business_name_request(url: str, templates: Mapping[str, str], *, model: str) -> dict:
    return chat_request(model=model, system=templates["business_name"], user=f"Website: {url}")
