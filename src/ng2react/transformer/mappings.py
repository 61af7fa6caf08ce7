"""
Angular to React mappings and transformations.
"""

from typing import Optional

from ..utils.string_utils import to_pascal_case, upper_first


class AngularReactMappings:
    """Mappings between Angular and React concepts."""

    # Component lifecycle mappings (hook -> effect shape)
    LIFECYCLE_MAPPINGS = {
        "ngOnInit": "useEffect(..., [])",
        "ngOnDestroy": "useEffect cleanup",
        "ngOnChanges": "useEffect(..., [inputs])",
        "ngAfterViewInit": "useEffect(..., [])",
        "ngAfterContentInit": "useEffect(..., [])",
        "ngDoCheck": "useEffect(...)",
        "ngAfterViewChecked": "useEffect(...)",
        "ngAfterContentChecked": "useEffect(...)",
    }

    # Event binding mappings
    EVENT_MAPPINGS = {
        "click": "onClick",
        "dblclick": "onDoubleClick",
        "change": "onChange",
        "input": "onInput",
        "submit": "onSubmit",
        "focus": "onFocus",
        "blur": "onBlur",
        "keydown": "onKeyDown",
        "keyup": "onKeyUp",
        "keypress": "onKeyPress",
        "mousedown": "onMouseDown",
        "mouseup": "onMouseUp",
        "mouseenter": "onMouseEnter",
        "mouseleave": "onMouseLeave",
        "mouseover": "onMouseOver",
        "mouseout": "onMouseOut",
        "mousemove": "onMouseMove",
        "contextmenu": "onContextMenu",
        "scroll": "onScroll",
        "wheel": "onWheel",
        "dragstart": "onDragStart",
        "dragend": "onDragEnd",
        "dragover": "onDragOver",
        "drop": "onDrop",
        "touchstart": "onTouchStart",
        "touchend": "onTouchEnd",
    }

    # Key names used by keyed events such as (keyup.enter)
    KEY_MAPPINGS = {
        "enter": "Enter",
        "escape": "Escape",
        "esc": "Escape",
        "space": " ",
        "tab": "Tab",
        "backspace": "Backspace",
        "delete": "Delete",
        "arrowup": "ArrowUp",
        "arrowdown": "ArrowDown",
        "arrowleft": "ArrowLeft",
        "arrowright": "ArrowRight",
    }

    # Template attribute -> JSX attribute
    JSX_MAPPINGS = {
        "class": "className",
        "for": "htmlFor",
        "tabindex": "tabIndex",
        "readonly": "readOnly",
        "maxlength": "maxLength",
        "minlength": "minLength",
        "colspan": "colSpan",
        "rowspan": "rowSpan",
        "contenteditable": "contentEditable",
        "autocomplete": "autoComplete",
        "autofocus": "autoFocus",
        "novalidate": "noValidate",
        "crossorigin": "crossOrigin",
        "enctype": "encType",
        "accesskey": "accessKey",
        "srcset": "srcSet",
        "innerHTML": "dangerouslySetInnerHTML",
    }

    # Built-in pipes -> functions of the generated angularPipes util module
    BUILTIN_PIPES = {
        "uppercase": "uppercase",
        "lowercase": "lowercase",
        "titlecase": "titlecase",
        "json": "json",
        "slice": "slice",
        "date": "formatDate",
        "currency": "formatCurrency",
        "number": "formatNumber",
        "percent": "formatPercent",
        "keyvalue": "keyvalue",
    }
    ASYNC_PIPE = "async"

    # Built-in structural/attribute directives handled by the template rules
    BUILTIN_DIRECTIVES = {
        "ngIf", "ngFor", "ngForOf", "ngSwitch", "ngSwitchCase", "ngSwitchDefault",
        "ngClass", "ngStyle", "ngModel", "ngTemplateOutlet", "routerLink", "routerLinkActive",
    }

    # Elements provided by the framework itself
    BUILTIN_ELEMENTS = {"router-outlet", "ng-container", "ng-template", "ng-content"}

    # Injectable framework classes -> React replacement
    BUILTIN_PROVIDERS = {
        "Router": "useNavigate",
        "ActivatedRoute": "useParams",
        "HttpClient": "useHttpClient",
        "ElementRef": "useRef",
        "Renderer2": None,
        "ChangeDetectorRef": None,
        "NgZone": None,
        "TemplateRef": None,
        "ViewContainerRef": None,
        "KeyValueDiffers": None,
        "IterableDiffers": None,
        "FormBuilder": None,
        "DomSanitizer": None,
        "Title": None,
    }
    UNSUPPORTED_PROVIDERS = {"FormBuilder", "NgZone", "DomSanitizer", "Title"}
    DIFFER_PROVIDERS = {"KeyValueDiffers", "IterableDiffers"}

    # Input types that need no import in generated code
    PRIMITIVE_TYPES = {"string", "number", "boolean", "any", "unknown", "void", "null", "undefined", "object"}

    def get_event_mapping(self, angular_event: str) -> str:
        """Get the React prop name for an Angular event binding."""
        if angular_event in self.EVENT_MAPPINGS:
            return self.EVENT_MAPPINGS[angular_event]
        return "on" + upper_first(to_pascal_case(angular_event) if "-" in angular_event else angular_event)

    def get_key_mapping(self, key: str) -> str:
        """Get the ``KeyboardEvent.key`` value for a keyed event modifier."""
        return self.KEY_MAPPINGS.get(key.lower(), upper_first(key))

    def get_jsx_attr_mapping(self, attribute: str) -> str:
        """Get the JSX attribute name for a template attribute."""
        return self.JSX_MAPPINGS.get(attribute, attribute)

    def get_pipe_function(self, pipe_name: str) -> Optional[str]:
        return self.BUILTIN_PIPES.get(pipe_name)

    def get_provider_mapping(self, type_name: str) -> Optional[str]:
        return self.BUILTIN_PROVIDERS.get(type_name)

    def is_builtin_provider(self, type_name: str) -> bool:
        return type_name in self.BUILTIN_PROVIDERS

    def is_builtin_pipe(self, pipe_name: str) -> bool:
        return pipe_name in self.BUILTIN_PIPES or pipe_name == self.ASYNC_PIPE
