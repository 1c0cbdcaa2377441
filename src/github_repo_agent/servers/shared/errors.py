ExtraInfoType = dict[str, str | None]


class ServerError(Exception):
    """An error from the GitHub Repo Agent server."""

    def __init__(self, message: str, extra_info: ExtraInfoType | None = None):
        msg = message
        if extra_info:
            msg += " (" + ", ".join([f"{key}: {value}" for key, value in extra_info.items() if value is not None]) + ")"
        super().__init__(msg)


class SamplingHandlerRequiredError(ServerError):
    """No LLM provider is configured."""

    def __init__(self):
        super().__init__(message="No sampling handler is configured. Set GOOGLE_API_KEY or OPENAI_API_KEY to generate text.")


class WorkflowError(ServerError):
    """A workflow stage could not obtain its input."""

    def __init__(self, stage: str, message: str, owner: str | None = None, repo: str | None = None):
        super().__init__(message=message, extra_info={"stage": stage, "owner": owner, "repo": repo})
