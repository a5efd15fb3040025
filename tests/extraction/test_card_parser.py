"""Tests for snowprice/extraction/card_parser.py"""

from bs4 import BeautifulSoup

from snowprice.extraction.card_parser import find_cards, page_breadcrumb, parse_cards

PAGE_URL = "https://shop.example.com/collections/snowboards?page=1"

CARD_GRID_HTML = """
<html><body>
<nav class="breadcrumb"><a href="/">Home</a> / <a href="/collections/snowboards">Snowboards</a></nav>
<div class="product-card">
  <a href="/products/custom"><img src="//cdn.example.com/custom.jpg"></a>
  <h3 class="product-title">Burton Custom 158</h3>
  <span class="price"><s>¥99,800</s> ¥89,800</span>
  <del>¥99,800</del>
</div>
<div class="product-card">
  <a href="/products/custom"><h3 class="product-title">Burton Custom duplicate</h3></a>
</div>
<div class="product-card">
  <a href="https://shop.example.com/products/assassin">
    <img data-src="/img/assassin_{width}x.jpg">
    <h3 class="product-title">Salomon   Assassin</h3>
  </a>
  <span class="price">¥72,000</span>
</div>
<div class="product-card"><span class="price">¥1,000</span></div>
</body></html>
"""

BARE_LIST_HTML = """
<html><body>
<ul>
  <li><a href="/products/a"><img src="/img/a.jpg" alt="Burton Custom"></a><span class="money">¥60,000</span></li>
  <li><a href="/products/b"><img src="/img/b.jpg" alt="Capita DOA"></a><span class="money">¥70,000</span></li>
</ul>
</body></html>
"""


class TestParseCards:
    def test_card_fields(self):
        cards = parse_cards(CARD_GRID_HTML, PAGE_URL, store_category="snowboard")
        custom = cards[0]
        assert custom.title == "Burton Custom 158"
        assert custom.product_url == "https://shop.example.com/products/custom"
        assert custom.price_text == "¥89,800"
        assert custom.original_price_text == "¥99,800"
        assert custom.image_url == "https://cdn.example.com/custom.jpg"

    def test_unique_urls_in_page_order(self):
        cards = parse_cards(CARD_GRID_HTML, PAGE_URL)
        assert [c.product_url for c in cards] == [
            "https://shop.example.com/products/custom",
            "https://shop.example.com/products/assassin",
        ]

    def test_lazy_image_and_whitespace(self):
        assassin = parse_cards(CARD_GRID_HTML, PAGE_URL)[1]
        assert assassin.title == "Salomon Assassin"
        assert assassin.image_url == "https://shop.example.com/img/assassin_400x.jpg"
        assert assassin.original_price_text == ""

    def test_category_hint(self):
        hint = parse_cards(CARD_GRID_HTML, PAGE_URL, store_category="snowboard")[0].category_hint
        assert hint.breadcrumb == "Home > Snowboards"
        assert hint.source_url == PAGE_URL
        assert hint.store_category == "snowboard"

    def test_cards_found_from_product_links(self):
        cards = parse_cards(BARE_LIST_HTML, "https://shop.example.com/list")
        assert [c.title for c in cards] == ["Burton Custom", "Capita DOA"]
        assert cards[1].price_text == "¥70,000"
        assert cards[0].image_url == "https://shop.example.com/img/a.jpg"

    def test_page_without_products(self):
        assert parse_cards("<html><body><p>Closed</p></body></html>", PAGE_URL) == []


class TestFindCards:
    def test_first_matching_selector(self):
        soup = BeautifulSoup(CARD_GRID_HTML, "lxml")
        assert len(find_cards(soup)) == 4

    def test_link_containers(self):
        soup = BeautifulSoup(BARE_LIST_HTML, "lxml")
        assert [c.name for c in find_cards(soup)] == ["li", "li"]


class TestPageBreadcrumb:
    def test_no_breadcrumb(self):
        assert page_breadcrumb(BeautifulSoup("<p>x</p>", "lxml")) == ""
