from conversation import STATE_KEY, ConversationState, get_conversation_state


class TestConversationState:
    def test_starts_without_words(self):
        state = ConversationState()
        assert state.filter_word is None
        assert state.search_word is None
        assert not state.has_filter_word

    def test_empty_filter_word_is_not_configured(self):
        state = ConversationState()
        state.filter_word = ""
        assert not state.has_filter_word

    def test_filter_word_configured(self):
        state = ConversationState()
        state.filter_word = "cat"
        assert state.has_filter_word


class TestGetConversationState:
    def test_created_lazily(self):
        chat_data = {}
        state = get_conversation_state(chat_data)
        assert chat_data[STATE_KEY] is state

    def test_same_state_returned_for_same_chat(self):
        chat_data = {}
        assert get_conversation_state(chat_data) is get_conversation_state(chat_data)

    def test_chats_do_not_share_state(self):
        first, second = {}, {}
        get_conversation_state(first).filter_word = "cat"
        assert get_conversation_state(second).filter_word is None
