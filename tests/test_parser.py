import pytest

from ng2react.errors import (
    DuplicateStructuralDirectiveError,
    MalformedDeclarationError,
    MalformedTemplateError,
    UnclassifiedUnitError,
)
from ng2react.models import (
    Attribute,
    ComponentDecl,
    ElementNode,
    EventBinding,
    Interpolation,
    PipeCall,
    PipeDecl,
    PropertyBinding,
    RouteConfigDecl,
    ServiceDecl,
    StructuralDirective,
    TextNode,
    UnitKind,
)
from ng2react.parser import SourceClassifier, TemplateParser
from ng2react.parser.expressions import (
    extract_identifiers,
    parse_bound_value,
    parse_microsyntax,
    rename_identifiers,
    split_assignment,
    split_top_level,
)

USER_CARD = """
import { Component, EventEmitter, Input, OnInit, Output } from '@angular/core';
import { User } from './user';
import { UserService } from './user.service';

@Component({
  selector: 'app-user-card',
  template: '<div class="card" *ngIf="user" (click)="select()">{{ user.name }}</div>',
})
export class UserCardComponent implements OnInit {
  @Input() userId!: string;
  @Output() userSelected = new EventEmitter<string>();
  user: User | null = null;

  constructor(private userService: UserService) {}

  ngOnInit() {
    this.load();
  }

  async load() {
    this.user = await this.userService.getUser(this.userId);
  }

  select() {
    this.userSelected.emit(this.userId);
  }
}
"""

TWO_CLASSES = """
import { Injectable, Pipe, PipeTransform } from '@angular/core';

@Injectable({ providedIn: 'root' })
export class ClockService {}

@Pipe({ name: 'shout' })
export class ShoutPipe implements PipeTransform {
  transform(value: string): string {
    return value.toUpperCase();
  }
}
"""

ROUTES = """
import { Routes } from '@angular/router';
import { HomeComponent } from './home.component';

export const routes: Routes = [
  { path: '', component: HomeComponent },
  { path: 'old', redirectTo: 'home' },
];
"""


class TestSourceClassifier:
    def test_one_unit_per_decorated_class(self):
        units = SourceClassifier().classify("src/app/misc.ts", TWO_CLASSES)
        assert [(u.class_name, u.kind) for u in units] == [
            ("ClockService", UnitKind.SERVICE),
            ("ShoutPipe", UnitKind.PIPE),
        ]

    def test_route_arrays_are_classified_as_routes(self):
        units = SourceClassifier().classify("src/app/app.routes.ts", ROUTES)
        assert len(units) == 1
        assert units[0].kind == UnitKind.ROUTES

    def test_plain_module_is_unclassified(self):
        with pytest.raises(UnclassifiedUnitError):
            SourceClassifier().classify("src/app/util.ts", "export const answer = 42;\n")

    def test_marker_without_parsable_class_is_malformed(self):
        text = "@Component({ selector: 'x' \nconst broken = ;\n"
        with pytest.raises(MalformedDeclarationError):
            SourceClassifier().classify("src/app/broken.ts", text)


class TestDeclarationParser:
    def test_component_declaration(self, parse_declarations):
        (decl,) = parse_declarations(USER_CARD, "src/app/user-card.component.ts")
        assert isinstance(decl, ComponentDecl)
        assert decl.name == "UserCardComponent"
        assert decl.selector == "app-user-card"
        assert [(i.name, i.type, i.optional) for i in decl.inputs] == [("userId", "string", False)]
        assert [(o.name, o.payload_type) for o in decl.outputs] == [("userSelected", "string")]
        assert [(d.name, d.type_name) for d in decl.dependencies] == [("userService", "UserService")]
        assert decl.lifecycle_hooks == ["ngOnInit"]
        assert [f.name for f in decl.fields] == ["user"]
        assert decl.fields[0].initializer == "null"
        assert [m.name for m in decl.methods] == ["constructor", "ngOnInit", "load", "select"]
        assert decl.method("load").is_async
        assert isinstance(decl.template_nodes[0], StructuralDirective)

    def test_pipe_and_service_from_one_file(self, parse_declarations):
        service, pipe = parse_declarations(TWO_CLASSES)
        assert isinstance(service, ServiceDecl)
        assert service.provided_in == "root"
        assert isinstance(pipe, PipeDecl)
        assert pipe.pipe_name == "shout"
        assert pipe.pure
        assert pipe.transform.return_type == "string"

    def test_template_url_is_resolved_against_the_unit(self, parse_declarations):
        text = """
import { Component } from '@angular/core';

@Component({ selector: 'app-card', templateUrl: './card.component.html' })
export class CardComponent {
  title = 'Card';
}
"""
        resources = {"src/app/card.component.html": "<p>{{ title }}</p>"}
        (decl,) = parse_declarations(text, "src/app/card.component.ts", resources)
        assert decl.template == "<p>{{ title }}</p>"
        assert decl.missing_resources == []

        (missing,) = parse_declarations(text, "src/app/card.component.ts")
        assert missing.template is None
        assert missing.missing_resources == ["src/app/card.component.html"]

    def test_template_errors_are_kept_on_the_declaration(self, parse_declarations):
        text = """
import { Component } from '@angular/core';

@Component({ selector: 'app-bad', template: '<div><span></div>' })
export class BadComponent {}
"""
        (decl,) = parse_declarations(text, "src/app/bad.component.ts")
        assert isinstance(decl.template_error, MalformedTemplateError)
        assert decl.template_error.unit == "src/app/bad.component.ts"

    def test_pipe_without_name_is_malformed(self, parse_declarations):
        text = """
import { Pipe } from '@angular/core';

@Pipe({ pure: false })
export class NamelessPipe {
  transform(value: any) { return value; }
}
"""
        with pytest.raises(MalformedDeclarationError):
            parse_declarations(text)

    def test_route_configuration(self, parse_declarations):
        (decl,) = parse_declarations(ROUTES, "src/app/app.routes.ts")
        assert isinstance(decl, RouteConfigDecl)
        assert decl.name == "routes"
        assert [(r.path, r.component, r.redirect_to) for r in decl.routes] == [
            ("", "HomeComponent", None),
            ("old", None, "home"),
        ]


class TestTemplateParser:
    def test_bindings_and_text(self):
        nodes = TemplateParser().parse(
            '<button (click)="save()" [disabled]="busy" class="btn">Save {{ label }}</button>'
        )
        assert len(nodes) == 1
        button = nodes[0]
        assert isinstance(button, ElementNode)
        assert button.tag == "button"
        event, prop, attr = button.attributes
        assert isinstance(event, EventBinding) and event.name == "click" and event.handler == "save()"
        assert isinstance(prop, PropertyBinding) and prop.name == "disabled" and prop.expression == "busy"
        assert isinstance(attr, Attribute) and attr.value == "btn"
        text, interpolation = button.children
        assert isinstance(text, TextNode) and text.text == "Save "
        assert isinstance(interpolation, Interpolation) and interpolation.expression == "label"

    def test_empty_template(self):
        assert TemplateParser().parse("   \n") == []

    def test_validate(self):
        assert TemplateParser().validate("<p>{{ ok }}</p>")
        assert not TemplateParser().validate("<p>{{ broken</p>")

    def test_two_structural_directives_on_one_element(self):
        with pytest.raises(DuplicateStructuralDirectiveError) as info:
            TemplateParser().parse('<li *ngIf="ready" *ngFor="let x of xs">{{ x }}</li>')
        assert info.value.directives == ["ngIf", "ngFor"]
        assert info.value.line == 1

    def test_mismatched_closing_tag(self):
        with pytest.raises(MalformedTemplateError) as info:
            TemplateParser().parse("<div>\n  <span></div>")
        assert "expected </span>" in str(info.value)
        assert info.value.line == 2

    def test_unclosed_element(self):
        with pytest.raises(MalformedTemplateError, match="Unclosed element <section>"):
            TemplateParser().parse("<section><p>text</p>")

    def test_unbalanced_attribute_expression_reports_the_attribute(self):
        with pytest.raises(MalformedTemplateError) as info:
            TemplateParser().parse('<div [title]="label(">x</div>')
        assert info.value.attribute == "[title]"
        assert info.value.line == 1

    def test_space_between_interpolations_is_kept(self):
        (p,) = TemplateParser().parse("<p>{{ a }} {{ b }}</p>")
        first, space, second = p.children
        assert isinstance(first, Interpolation) and first.expression == "a"
        assert isinstance(space, TextNode) and space.text == " "
        assert isinstance(second, Interpolation) and second.expression == "b"

    def test_space_between_element_and_interpolation_is_kept(self):
        element, space, interpolation = TemplateParser().parse("<b>Total:</b> {{ total }}")
        assert isinstance(element, ElementNode)
        assert isinstance(space, TextNode) and space.text == " "
        assert isinstance(interpolation, Interpolation)

    def test_layout_whitespace_is_dropped(self):
        (ul,) = TemplateParser().parse("<ul>\n  <li>{{ a }}</li>\n  <li>{{ b }}</li>\n</ul>")
        assert [type(c) for c in ul.children] == [ElementNode, ElementNode]
        (p,) = TemplateParser().parse("<p>\n  {{ a }}\n</p>")
        assert [type(c) for c in p.children] == [Interpolation]

    def test_interpolated_attribute_becomes_a_template_literal_binding(self):
        (img,) = TemplateParser().parse('<img title="Hi {{ name }}!" src="x.png">')
        title, src = img.attributes
        assert isinstance(title, PropertyBinding)
        assert title.name == "title"
        assert title.expression == "`Hi ${name}!`"
        assert isinstance(src, Attribute) and src.value == "x.png"

    def test_whole_value_interpolation_binds_the_expression(self):
        (img,) = TemplateParser().parse('<img alt="{{ caption | uppercase }}">')
        (alt,) = img.attributes
        assert isinstance(alt, PropertyBinding)
        assert alt.expression == "caption | uppercase"
        assert isinstance(alt.value, PipeCall) and alt.value.name == "uppercase"

    def test_piped_interpolation_mixed_with_text_stays_static(self):
        (img,) = TemplateParser().parse('<img alt="Photo of {{ caption | uppercase }}">')
        (alt,) = img.attributes
        assert isinstance(alt, Attribute)
        assert alt.value == "Photo of {{ caption | uppercase }}"

    def test_unterminated_attribute_interpolation(self):
        with pytest.raises(MalformedTemplateError) as info:
            TemplateParser().parse('<img title="Hi {{ name">')
        assert info.value.attribute == "title"


class TestExpressions:
    def test_pipe_chain_applies_left_to_right(self):
        value = parse_bound_value("name | uppercase | slice:0:3")
        assert isinstance(value, PipeCall)
        assert [p.name for p in value.chain()] == ["uppercase", "slice"]
        assert value.args == ["0", "3"]
        assert value.base == "name"

    def test_logical_or_is_not_a_pipe(self):
        assert parse_bound_value("a || b") == "a || b"

    def test_split_top_level_ignores_nested_separators(self):
        assert split_top_level("f(a, b), 'x,y', [1, 2]", ",") == ["f(a, b)", " 'x,y'", " [1, 2]"]

    def test_ng_for_microsyntax(self):
        syntax = parse_microsyntax("ngFor", "let item of items; let i = index; trackBy: trackById")
        assert syntax.item == "item"
        assert syntax.expression == "items"
        assert syntax.locals == {"i": "index"}
        assert syntax.track_by == "trackById"

    def test_ng_if_microsyntax_with_alias_and_else(self):
        syntax = parse_microsyntax("ngIf", "user$ | async as user; else loading")
        assert syntax.expression == "user$ | async"
        assert syntax.alias == "user"
        assert syntax.else_ref == "loading"

    def test_identifiers_skip_member_names(self):
        assert extract_identifiers("user.name + count * user.age") == ["user", "count"]

    def test_rename_identifiers(self):
        assert rename_identifiers("user.name", {"name": "x", "user": "this.user"}) == "this.user.name"

    def test_split_assignment(self):
        assert split_assignment("total = price * (count + 1)") == ("total", "=", "price * (count + 1)")
        assert split_assignment("count++") == ("count", "+=", "1")
        assert split_assignment("items.push(x)") is None
