##########################################################################################
#
# Script name: conftest.py
#
# Description: Shared pytest fixtures.
#
##########################################################################################

import pytest

from helpers import ScriptedAIService


@pytest.fixture
def scripted_service():
    return ScriptedAIService
