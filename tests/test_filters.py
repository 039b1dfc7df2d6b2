from filters import WordFilter, parse_single_word, tokenize


class TestTokenize:
    def test_splits_on_any_whitespace(self):
        assert tokenize("I  saw\ta\ncat") == ["I", "saw", "a", "cat"]

    def test_empty_and_none(self):
        assert tokenize("") == []
        assert tokenize(None) == []


class TestParseSingleWord:
    def test_single_word_keeps_casing(self):
        assert parse_single_word("Cat") == "Cat"

    def test_surrounding_whitespace_is_ignored(self):
        assert parse_single_word("  cat \n") == "cat"

    def test_multiple_words_rejected(self):
        assert parse_single_word("black cat") is None

    def test_blank_input_rejected(self):
        assert parse_single_word("   ") is None
        assert parse_single_word(None) is None


class TestWordFilter:
    def test_whole_word_match(self):
        assert WordFilter("cat").matches("I saw a cat today")

    def test_case_insensitive(self):
        assert WordFilter("cat").matches("Cat")
        assert WordFilter("CAT").matches("i saw a cat")

    def test_substring_does_not_match(self):
        assert not WordFilter("cat").matches("Category")
        assert not WordFilter("cat").matches("concatenate the cats")

    def test_punctuation_is_part_of_token(self):
        assert not WordFilter("cat").matches("I saw a cat.")

    def test_no_text(self):
        assert not WordFilter("cat").matches(None)
        assert not WordFilter("cat").matches("")
