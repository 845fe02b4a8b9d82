import json
from unittest.mock import AsyncMock, MagicMock

import pytest


def make_chat_response(content):
    """Build an object shaped like an OpenAI chat completion carrying ``content``."""
    message = MagicMock()
    message.content = content
    choice = MagicMock()
    choice.message = message
    response = MagicMock()
    response.choices = [choice]
    return response


@pytest.fixture
def sample_arb():
    return json.dumps({
        "@@locale": "en",
        "greeting": "Hello {name}!",
        "@greeting": {"placeholders": {"name": {"type": "String"}}},
        "inbox": "You have {count, plural, =0{no new messages} =1{1 new message} other{{count} new messages}}.",
        "@inbox": {"description": "Inbox counter"}
    }, indent=2)


@pytest.fixture
def sample_js():
    return (
        "import { defineMessages } from 'react-intl';\n"
        "\n"
        "export default defineMessages({\n"
        "  greeting: {\n"
        "    id: 'app.greeting',\n"
        "    defaultMessage: 'Hello {name}!',\n"
        "  },\n"
        "  farewell: {\n"
        "    description: \"Shown on logout\",\n"
        "    defaultMessage: \"Goodbye, {name}\",\n"
        "    id: 'app.farewell',\n"
        "  },\n"
        "});\n"
    )


@pytest.fixture
def fake_openai_client():
    """An AsyncOpenAI stand-in whose chat completion returns whatever the test sets."""
    client = MagicMock()
    client.chat.completions.create = AsyncMock(return_value=make_chat_response("[]"))
    return client


@pytest.fixture
def chat_response():
    """Factory fixture building fake chat completions."""
    return make_chat_response
