"""Source templates for the generated Elm binding and its JavaScript runner."""

from __future__ import annotations

# A headless Platform.worker that applies the target function to its flags
# and sends the result out through a port.
BINDING_TEMPLATE = """\
port module {{ file_name }} exposing (main)

import {{ module_path }}


port out : {{ output_type }} -> Cmd msg


main : Program {{ input_type }} () ()
main =
    Platform.worker
        { init = \\flags -> ( (), out ({{ module_path }}.{{ function_name }} flags) )
        , update = \\_ _ -> ( (), Cmd.none )
        , subscriptions = \\_ -> Sub.none
        }
"""

RUNNER_TEMPLATE = """\
import { Elm } from "./{{ binding_module_name }}.js";

export default function (flags) {
  {{ debug_extras }}
  return new Promise((resolve) => {
    const app = Elm.{{ binding_module_name }}.init({ flags });
    app.ports.out.subscribe((output) => resolve(output));
  });
}
"""

DEBUG_EXTRAS = "console.log('Calling elm binding with', flags);"


def fill(template: str, **values: str) -> str:
    """Replace each ``{{ name }}`` placeholder with its value."""
    for name, value in values.items():
        template = template.replace(f"{{{{ {name} }}}}", value)
    return template


def render_binding(
    *,
    module_path: str,
    function_name: str,
    file_name: str,
    input_type: str,
    output_type: str,
) -> str:
    """Fill the Elm binding template.

    Args:
        module_path: Module defining the function, e.g. "MyModule.Sub"
        function_name: Unqualified function name
        file_name: Module name of the binding itself (matches its file name)
        input_type: Elm type expression of the flags, already parenthesized
        output_type: Elm type expression sent through the port

    """
    return fill(
        BINDING_TEMPLATE,
        module_path=module_path,
        function_name=function_name,
        file_name=file_name,
        input_type=input_type,
        output_type=output_type,
    )


def render_runner(binding_module_name: str, *, debug: bool = False) -> str:
    """Fill the runner template that calls into the compiled binding."""
    return fill(
        RUNNER_TEMPLATE,
        binding_module_name=binding_module_name,
        debug_extras=DEBUG_EXTRAS if debug else "",
    )
