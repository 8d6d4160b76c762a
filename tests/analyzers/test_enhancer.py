"""Tests for the symbol enhancer."""

from __future__ import annotations

import pytest

from protondocs.analyzers.enhancer import SymbolEnhancer
from protondocs.analyzers.source_tree import is_exported, parse_directory
from protondocs.diagnostics import SYMBOL_NOT_FOUND, Diagnostics
from protondocs.models import Field, TypeKind
from tests._fixtures.repo_builder import GoRepoBuilder

SHOP_SOURCE = """
// Package shop models a store.
package shop

import "io"

// Cart holds items.
type Cart struct {
    // Owner is the customer name.
    Owner string `json:"owner"`
    Count, Limit int // capacity
    Price float64
    Active bool
    Next *Cart
    Tags []string
    io.Reader
    *Item
    hidden string
}

// Item is sold.
type Item struct{}

// Store persists carts.
// Save stores a cart.
type Store interface {
    // Load fetches a cart by id.
    Load(id string) (*Cart, error)
    Save(c *Cart) error
    io.Closer
    internal()
}

// ID identifies a cart.
type ID = string

type Quantity int

// NewCart creates a cart.
//
// Parameters:
// - owner: the customer
// - limit: maximum items
//
// Returns:
// - *Cart: the new cart
func NewCart(owner string, limit int) *Cart { return nil }

// Merge combines carts.
func Merge(a, b *Cart, opts ...string) (merged *Cart, err error) { return nil, nil }

// Add puts an item in the cart.
func (c *Cart) Add(item Item) {}

func (c *Cart) reset() {}

// Map applies nothing.
func Map[T any](values []T) []T { return values }
"""


@pytest.fixture
def enhancer(go_repo: GoRepoBuilder) -> SymbolEnhancer:
    go_repo.write({"shop/shop.go": SHOP_SOURCE})
    tree = parse_directory(go_repo.path("shop"))[0]
    return SymbolEnhancer(tree, Diagnostics())


def test_enhance_function_expands_grouped_parameters(enhancer: SymbolEnhancer) -> None:
    merge = enhancer.enhance_function("Merge")
    assert merge.declaration == "func Merge(a, b *Cart, opts ...string) (merged *Cart, err error)"
    assert merge.doc == "Merge combines carts."
    assert [(param.name, param.type) for param in merge.params] == [
        ("a", "*Cart"),
        ("b", "*Cart"),
        ("opts", "...string"),
    ]
    assert [(result.name, result.type) for result in merge.results] == [
        ("merged", "*Cart"),
        ("err", "error"),
    ]
    assert merge.example_code == "result := Merge(/* parameters */)"
    assert not merge.is_method


def test_enhance_function_attaches_section_docs(enhancer: SymbolEnhancer) -> None:
    new_cart = enhancer.enhance_function("NewCart")
    assert new_cart.doc == "NewCart creates a cart."
    assert new_cart.declaration == "func NewCart(owner string, limit int) *Cart"
    assert [param.doc for param in new_cart.params] == ["the customer", "maximum items"]
    assert len(new_cart.results) == 1
    assert new_cart.results[0].name == ""
    assert new_cart.results[0].type == "*Cart"
    assert new_cart.results[0].doc == "the new cart"
    assert "Parameters:" in new_cart.full_doc


def test_enhance_function_for_method_and_generic(enhancer: SymbolEnhancer) -> None:
    add = enhancer.enhance_function("Add", receiver="*Cart")
    assert add.is_method
    assert add.receiver == "*Cart"
    assert add.declaration == "func (*Cart) Add(item Item)"
    assert add.doc == "Add puts an item in the cart."

    generic = enhancer.enhance_function("Map")
    assert generic.declaration == "func Map[T any](values []T) []T"


def test_parameter_count_matches_declaration_for_every_function(enhancer: SymbolEnhancer) -> None:
    expected = {"NewCart": 2, "Merge": 3, "Map": 1}
    for name in sorted(enhancer.tree.index.functions):
        if not is_exported(name):
            continue
        assert len(enhancer.enhance_function(name).params) == expected[name]
    assert len(enhancer.diagnostics) == 0


def test_missing_function_yields_empty_record_and_one_diagnostic(enhancer: SymbolEnhancer) -> None:
    missing = enhancer.enhance_function("Vanish")
    assert missing.name == "Vanish"
    assert missing.declaration == ""
    assert missing.params == ()
    assert missing.results == ()
    diagnostics = enhancer.diagnostics.entries
    assert len(diagnostics) == 1
    assert diagnostics[0].code == SYMBOL_NOT_FOUND
    assert diagnostics[0].subject == "Vanish"


def test_enhance_struct(enhancer: SymbolEnhancer) -> None:
    cart = enhancer.enhance_type("Cart")
    assert cart.kind is TypeKind.STRUCT
    assert cart.doc == "Cart holds items."
    assert cart.fields[0] == Field(
        name="Owner", type="string", tag='`json:"owner"`', doc="Owner is the customer name."
    )
    assert [(field.name, field.type, field.doc) for field in cart.fields[1:3]] == [
        ("Count", "int", "capacity"),
        ("Limit", "int", "capacity"),
    ]
    embedded = [field.type for field in cart.fields if not field.name]
    assert embedded == ["io.Reader", "*Item"]
    assert cart.declaration.startswith("type Cart struct {\n    Owner string `json:\"owner\"`\n")
    assert cart.declaration.endswith("\n}")
    assert [method.name for method in cart.methods] == ["Add"]
    assert [func.name for func in cart.funcs] == ["Merge", "NewCart"]

    assert cart.example_code.splitlines() == [
        "// Create a new Cart",
        "cart := Cart{",
        '    Owner: "example",',
        "    Count: 42,",
        "    Limit: 42,",
        "    Price: 3.14,",
        "    Active: true,",
        "    Next: &Cart{},",
        "    Tags: []string{},",
        "}",
    ]


def test_enhance_interface(enhancer: SymbolEnhancer) -> None:
    store = enhancer.enhance_type("Store")
    assert store.kind is TypeKind.INTERFACE
    assert [method.name for method in store.methods] == ["Load", "Save"]
    load, save = store.methods
    assert load.doc == "Load fetches a cart by id."
    assert load.receiver == "Store"
    assert load.declaration == "func (Store) Load(id string) (*Cart, error)"
    assert save.doc == "stores a cart."
    assert store.declaration.splitlines() == [
        "type Store interface {",
        "    Load(id string) (*Cart, error)",
        "    Save(c *Cart) error",
        "    io.Closer",
        "    internal()",
        "}",
    ]
    assert "type MyStore struct {" in store.example_code
    assert "func (m MyStore) Load(param1 string) (*Cart, error) {" in store.example_code
    assert "func (m MyStore) Save(param1 *Cart) error {" in store.example_code


def test_enhance_alias_and_defined_types(enhancer: SymbolEnhancer) -> None:
    alias = enhancer.enhance_type("ID")
    assert alias.kind is TypeKind.ALIAS
    assert alias.declaration == "type ID = string"
    assert alias.doc == "ID identifies a cart."
    assert alias.example_code == "// Example usage of ID\nvar value ID\n// Initialize with appropriate value"

    quantity = enhancer.enhance_type("Quantity")
    assert quantity.declaration == "type Quantity int"
    assert quantity.doc == ""


def test_missing_type_is_reported_once(enhancer: SymbolEnhancer) -> None:
    missing = enhancer.enhance_type("Ghost")
    assert missing.name == "Ghost"
    assert missing.declaration == ""
    assert missing.fields == ()
    assert [entry.code for entry in enhancer.diagnostics] == [SYMBOL_NOT_FOUND]


def test_inline_struct_fields_use_source_text(go_repo: GoRepoBuilder) -> None:
    go_repo.write(
        {
            "conf/conf.go": """
            package conf

            // Settings groups options.
            type Settings struct {
                Server struct{ Port int }
                Hooks interface{ Run() }
            }
            """,
        }
    )
    tree = parse_directory(go_repo.path("conf"))[0]
    settings = SymbolEnhancer(tree, Diagnostics()).enhance_type("Settings")
    assert [(field.name, field.type) for field in settings.fields] == [
        ("Server", "struct{ Port int }"),
        ("Hooks", "interface{ Run() }"),
    ]
    assert settings.declaration.splitlines() == [
        "type Settings struct {",
        "    Server struct{ Port int }",
        "    Hooks interface{ Run() }",
        "}",
    ]
    assert "    Server: struct{ Port int }{}," in settings.example_code
    assert "    Hooks: nil," in settings.example_code
    assert "<" not in settings.example_code
