from feed_doctor.services.content_generators import (
    extract_keywords,
    generate_optimized_description,
    generate_optimized_title,
)


def test_optimized_title_cleans_and_title_cases():
    assert generate_optimized_title("SUPER bottle!!! for HIKING") == "Super Bottle For Hiking"


def test_optimized_title_keeps_single_special_char():
    assert generate_optimized_title("bottle & cup") == "Bottle & Cup"


def test_optimized_title_empty():
    assert generate_optimized_title("") == ""


def test_short_description_unchanged():
    text = "Keeps drinks cold. Fits cup holders."
    assert generate_optimized_description(text) == text


def test_description_grouped_in_pairs():
    text = "Keeps drinks cold. Fits cup holders! Dishwasher safe? Comes in five colours."

    assert generate_optimized_description(text) == (
        "Keeps drinks cold. Fits cup holders.\n\nDishwasher safe. Comes in five colours."
    )


def test_description_odd_sentence_count():
    text = "One. Two. Three."
    assert generate_optimized_description(text) == "One. Two.\n\nThree."


def test_empty_description():
    assert generate_optimized_description("") == ""


def test_keywords_by_frequency_then_first_seen():
    text = "steel bottle, steel cup; bottle steel. Cold drinks stay cold"

    assert extract_keywords(text) == ["steel", "bottle", "cold", "drinks", "stay"]


def test_keywords_drop_short_tokens():
    keywords = extract_keywords("the cup and mug are big but tiny bottles win")

    assert all(len(word) > 3 for word in keywords)
    assert keywords == ["tiny", "bottles"]


def test_keywords_limited_to_ten_and_deterministic():
    text = " ".join(f"keyword{i} " * (20 - i) for i in range(15))

    first = extract_keywords(text)
    assert len(first) == 10
    assert first == [f"keyword{i}" for i in range(10)]
    assert extract_keywords(text) == first


def test_keywords_empty_text():
    assert extract_keywords("") == []
