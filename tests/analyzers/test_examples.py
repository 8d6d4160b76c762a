"""Tests for runnable example extraction."""

from __future__ import annotations

from protondocs.analyzers.examples import extract_examples, is_example_name
from protondocs.analyzers.source_tree import parse_directory
from tests._fixtures.repo_builder import GoRepoBuilder


def test_is_example_name() -> None:
    assert is_example_name("Example")
    assert is_example_name("ExampleCart")
    assert is_example_name("ExampleCart_Add")
    assert is_example_name("Example_second")
    assert not is_example_name("Examplefoo")
    assert not is_example_name("TestCart")


def test_extract_examples_reads_code_and_output(go_repo: GoRepoBuilder) -> None:
    go_repo.write(
        {
            "greet/greet.go": "package greet\n\nfunc Hello() string { return \"hi\" }\n",
            "greet/example_test.go": """
            package greet_test

            import "fmt"

            // ExampleHello prints a greeting.
            func ExampleHello() {
            	fmt.Println("hi")
            	// Output: hi
            }

            func ExampleHello_lines() {
            	fmt.Println("a")
            	fmt.Println("b")
            	// Unordered output:
            	// b
            	// a
            }

            func ExampleHello_silent() {
            	_ = 1
            	// Output:
            }

            func ExampleHello_noOutput() {
            	fmt.Println("x")
            }

            func ExampleHello_withArgs(n int) {}

            func helperExample() {}
            """,
        }
    )
    trees = parse_directory(go_repo.path("greet"), tests_only=True)
    examples = {example.function: example for example in extract_examples(trees)}
    assert sorted(examples) == [
        "ExampleHello",
        "ExampleHello_lines",
        "ExampleHello_noOutput",
        "ExampleHello_silent",
    ]

    hello = examples["ExampleHello"]
    assert hello.name == "Hello"
    assert hello.doc == "ExampleHello prints a greeting."
    assert hello.code == 'fmt.Println("hi")'
    assert hello.output == "hi"
    assert not hello.unordered

    lines = examples["ExampleHello_lines"]
    assert lines.unordered
    assert lines.output == "b\na"
    assert lines.code == 'fmt.Println("a")\nfmt.Println("b")'

    silent = examples["ExampleHello_silent"]
    assert silent.empty_output
    assert silent.output == ""

    no_output = examples["ExampleHello_noOutput"]
    assert not no_output.empty_output
    assert no_output.code == 'fmt.Println("x")'


def test_examples_outside_test_files_are_ignored(go_repo: GoRepoBuilder) -> None:
    go_repo.write({"demo/demo.go": "package demo\n\nfunc ExampleRun() {}\n"})
    assert extract_examples(parse_directory(go_repo.path("demo"))) == []
