"""
Tests for HTML signal extraction.
"""

from matching.services.page_signals import extract_links, extract_page_signals


class TestExtractPageSignals:
    """Tests for title, h1 and JSON-LD extraction."""

    def test_extracts_title_and_first_h1(self):
        html = """
        <html><head><title>  Widget Pro |
            Acme </title></head>
        <body><h1>Acme <span>Widget</span> Pro</h1><h1>Second</h1></body></html>
        """
        signals = extract_page_signals(html)

        assert signals.title == "Widget Pro | Acme"
        assert signals.h1 == "Acme Widget Pro"

    def test_flattens_json_ld_lists_and_graph(self):
        html = """
        <script type="application/ld+json">
        [{"@type": "Organization", "url": "https://acme.com"},
         {"@type": "Product", "sku": "ABC123", "name": "Acme Widget Pro"}]
        </script>
        <script type="application/ld+json">
        {"@graph": [{"@type": ["Thing", "Product"], "name": "Graph Widget"}]}
        </script>
        """
        signals = extract_page_signals(html)

        products = signals.product_blocks()
        assert {block.get("name") for block in products} == {"Acme Widget Pro", "Graph Widget"}

    def test_skips_malformed_json_ld(self):
        html = """
        <script type="application/ld+json">{not json</script>
        <script type="application/ld+json">{"@type": "Product", "sku": "X1"}</script>
        """
        signals = extract_page_signals(html)

        assert [block["sku"] for block in signals.structured_blocks] == ["X1"]

    def test_body_is_lowercased_raw_html(self):
        signals = extract_page_signals("<p>Part ABC123</p>")
        assert "abc123" in signals.body_lower

    def test_empty_html(self):
        signals = extract_page_signals("")
        assert signals.title == ""
        assert signals.structured_blocks == []


class TestExtractLinks:
    """Tests for hyperlink extraction."""

    def test_resolves_relative_links_and_strips_fragments(self):
        html = """
        <a href="/products/widget-pro#reviews">Widget</a>
        <a href="/products/widget-pro">Widget again</a>
        <a href="https://acme.com/products/gadget">Gadget</a>
        """
        links = extract_links(html, "https://acme.com/search?q=abc")

        assert links == [
            "https://acme.com/products/widget-pro",
            "https://acme.com/products/gadget",
        ]

    def test_skips_assets_cart_and_search_links(self):
        html = """
        <a href="/cart">Cart</a>
        <a href="/img/widget.png">Image</a>
        <a href="/search?q=other">Search</a>
        <a href="mailto:sales@acme.com">Mail</a>
        <a href="#top">Top</a>
        <a href="/products/widget-pro">Widget</a>
        """
        links = extract_links(html, "https://acme.com/")

        assert links == ["https://acme.com/products/widget-pro"]

    def test_skip_patterns_match_whole_path_segments(self):
        html = """
        <a href="/products/accountant-desk-pro">Desk</a>
        <a href="/compare-x100">X100</a>
        <a href="/searchlight-lamp">Lamp</a>
        <a href="/account/orders">Orders</a>
        <a href="/compare/">Compare</a>
        <a href="/catalogsearch/result/?q=x">Catalog search</a>
        """
        links = extract_links(html, "https://acme.com/")

        assert links == [
            "https://acme.com/products/accountant-desk-pro",
            "https://acme.com/compare-x100",
            "https://acme.com/searchlight-lamp",
        ]
