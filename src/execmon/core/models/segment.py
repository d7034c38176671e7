from pydantic import BaseModel


class StyledSegment(BaseModel):
    """A run of literal text sharing one style.

    `style_class` is a space separated list of style markers (empty when the
    text is unstyled).
    """

    model_config = {"frozen": True}

    text: str
    style_class: str = ""
