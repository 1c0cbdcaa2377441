from typing import Annotated, Any

from pydantic import Field

OWNER = Annotated[str, Field(description="The owner of the repository. As facebook in facebook/react.")]
REPO = Annotated[str, Field(description="The name of the repository. As react in facebook/react.")]
USERNAME = Annotated[str, Field(description="The GitHub username of the user.")]
PER_PAGE = Annotated[int, Field(description="The number of commits to return (at most 100).", ge=1, le=100)]

MEMORY_KEY = Annotated[str, Field(description="The key to store or look up the memory under.")]
MEMORY_DATA = Annotated[dict[str, Any], Field(description="The JSON object to memorize.")]
