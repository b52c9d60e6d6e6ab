"""Tests for the page model and cropping."""

from __future__ import annotations

import pytest

from geometry import Rectangle, Ruling
from page_fixtures import make_page, make_word


def test_default_area_is_full_page():
    page = make_page(width=600, height=800)

    assert page.area == Rectangle(top=0, left=0, width=600, height=800)
    assert page.is_empty


def test_invalid_page_number():
    with pytest.raises(ValueError):
        make_page(number=0)


def test_rulings_split_by_orientation():
    page = make_page(rulings=[
        Ruling(50, 100, 250, 100),
        Ruling(150, 90, 150, 200),
        Ruling(0, 0, 300, 300),
    ])

    assert page.horizontal_rulings() == [Ruling(50, 100, 250, 100)]
    assert page.vertical_rulings() == [Ruling(150, 90, 150, 200)]


def test_crop_filters_text_and_clips_rulings():
    inside = make_word("in", 60, 60)
    outside = make_word("out", 300, 300)
    page = make_page(
        text=inside + outside,
        rulings=[
            Ruling(0, 80, 400, 80),
            Ruling(500, 0, 500, 400),
            Ruling(0, 0, 90, 90),
        ],
    )

    region = Rectangle(top=50, left=50, width=100, height=100)
    cropped = page.crop(region)

    assert cropped.area == region
    assert cropped.text == tuple(inside)
    assert cropped.rulings == (Ruling(50, 80, 150, 80),)
    assert cropped.number == page.number


def test_crop_does_not_modify_original():
    page = make_page(text=make_word("x", 10, 10), rulings=[Ruling(0, 5, 100, 5)])

    page.crop(Rectangle(top=0, left=50, width=10, height=10))

    assert len(page.text) == 1
    assert page.rulings == (Ruling(0, 5, 100, 5),)


def test_crop_outside_page_is_empty():
    page = make_page(text=make_word("x", 10, 10), width=100, height=100)

    cropped = page.crop(Rectangle(top=500, left=500, width=10, height=10))

    assert cropped.is_empty
    assert cropped.area.area == 0
