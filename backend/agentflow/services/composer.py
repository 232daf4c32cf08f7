import asyncio
import logging
from typing import Awaitable, Callable, Mapping, Optional

import httpx

from ..errors import AgentFlowError
from ..prompts import (
    IntentClassifier,
    KeywordIntentClassifier,
    build_basic_request,
    build_business_name_request,
    build_section_requests,
)
from ..schemas import FormPayload
from ..ui import RenderedOutput, SubmissionMachine, SubmissionState, render_basic, render_extended, sections_for

logger = logging.getLogger(__name__)

SendFn = Callable[[dict], Awaitable[str]]
SummarizeFn = Callable[[str], Awaitable[str]]


def _host_of(url: str) -> str:
    try:
        return httpx.URL(url).host
    except httpx.InvalidURL:
        return ""


class Composer:
    """Runs one form submission from prompt assembly to rendered panels.

    ``send`` delivers a chat request and returns the normalized message text;
    ``summarize`` turns a business URL into a short summary. Both are injected
    so the same flow runs in-process behind ``/api/generate`` or remotely
    through ``ProxyClient``.
    """

    def __init__(
        self,
        *,
        send: SendFn,
        templates: Mapping[str, str],
        model: str,
        summarize: Optional[SummarizeFn] = None,
        classifier: Optional[IntentClassifier] = None,
        default_variant: str = "extended",
    ):
        self.send = send
        self.summarize = summarize
        self.templates = templates
        self.model = model
        self.classifier = classifier or KeywordIntentClassifier()
        self.default_variant = default_variant

    def variant_for(self, form: FormPayload) -> str:
        return form.variant or self.default_variant

    def new_machine(self, form: FormPayload) -> SubmissionMachine:
        return SubmissionMachine(sections=sections_for(self.variant_for(form)))

    async def compose(self, form: FormPayload, machine: Optional[SubmissionMachine] = None) -> RenderedOutput:
        """Render all panels for ``form``; on failure every panel shows the error and the error is re-raised."""
        machine = machine or self.new_machine(form)
        machine.submit()
        try:
            if self.variant_for(form) == "basic":
                output = await self._compose_basic(form, machine)
            else:
                output = await self._compose_extended(form, machine)
        except AgentFlowError as exc:
            machine.fail(exc.public_message)
            raise
        return machine.finish(output)

    async def _compose_basic(self, form: FormPayload, machine: SubmissionMachine) -> RenderedOutput:
        machine.advance(SubmissionState.REQUESTING_SECTIONS)
        raw = await self.send(build_basic_request(form, self.templates, model=self.model))
        return render_basic(raw, lead_enabled=form.lead_enabled)

    async def _compose_extended(self, form: FormPayload, machine: SubmissionMachine) -> RenderedOutput:
        business_name = ""
        summary = ""
        if form.business_url:
            machine.advance(SubmissionState.FETCHING_BUSINESS_NAME)
            business_name = await self._business_name(form.business_url)
            if self.summarize is not None:
                machine.advance(SubmissionState.SUMMARIZING)
                summary = await self._summary(form.business_url)

        machine.advance(SubmissionState.REQUESTING_SECTIONS)
        requests = build_section_requests(
            form,
            self.templates,
            model=self.model,
            classifier=self.classifier,
            business_name=business_name,
            summary=summary,
        )
        if "lead" not in requests:
            logger.info("Goal is not sales-oriented; skipping lead scoring")
        # All-or-nothing: the first failing section fails the submission
        results = await asyncio.gather(*(self.send(request) for request in requests.values()))
        return render_extended(dict(zip(requests, results)))

    async def _business_name(self, url: str) -> str:
        try:
            name = await self.send(build_business_name_request(url, self.templates, model=self.model))
        except AgentFlowError as exc:
            logger.warning("Could not determine business name for %s: %s", url, exc.public_message)
            name = ""
        name = name.strip().splitlines()[0].strip(" \"'") if name.strip() else ""
        return name or _host_of(url)

    async def _summary(self, url: str) -> str:
        try:
            return await self.summarize(url)
        except AgentFlowError as exc:
            logger.warning("Continuing without a site summary for %s: %s", url, exc.public_message)
            return ""
