import pytest

from ng2react.errors import DiagnosticCode, SymbolIndexSealedError
from ng2react.ir import ComponentIR, ServiceIR, StubIR, SymbolIndex
from ng2react.ir.nodes import DependencyKind, EffectTrigger
from ng2react.models import ComponentDecl, PipeDecl, ServiceDecl, UnitKind

USER_SERVICE = """
import { Injectable } from '@angular/core';

@Injectable({ providedIn: 'root' })
export class UserService {
  async getUser(id: string): Promise<string> {
    return id;
  }
}
"""

COUNTER = """
import { Component, OnDestroy, OnInit } from '@angular/core';
import { interval, Subscription } from 'rxjs';
import { UserService } from './user.service';

@Component({
  selector: 'app-counter',
  template: '<p>{{ label }}: {{ ticks }}</p><input [(ngModel)]="label">',
})
export class CounterComponent implements OnInit, OnDestroy {
  static readonly STEP = 1;
  label = 'Ticks';
  ticks = 0;
  limit = 10;
  private sub?: Subscription;

  constructor(private users: UserService) {}

  ngOnInit() {
    this.sub = interval(1000).subscribe(() => this.tick());
  }

  ngOnDestroy() {
    console.log('bye');
  }

  tick() {
    this.ticks += CounterComponent.STEP;
  }
}
"""

DIFFING = """
import { Component, DoCheck, Input, OnChanges } from '@angular/core';

@Component({ selector: 'app-diff', template: '<p>{{ value }}</p>' })
export class DiffComponent implements OnChanges, DoCheck {
  @Input() value = '';

  ngOnChanges() {}

  ngDoCheck() {}
}
"""


class TestSymbolIndex:
    def _decls(self):
        return [
            ComponentDecl(name="UserCardComponent", source_path="a.ts", selector="app-user-card"),
            PipeDecl(name="TruncatePipe", source_path="b.ts", pipe_name="truncate"),
        ]

    def test_lookups(self):
        index = SymbolIndex.build(self._decls())
        assert index.sealed
        assert index.lookup("UserCardComponent").unit == "a.ts"
        assert index.element("app-user-card").name == "UserCardComponent"
        assert index.pipe("truncate").kind == UnitKind.PIPE
        assert index.lookup("Missing") is None

    def test_duplicate_name_keeps_the_first_registration(self):
        index = SymbolIndex()
        assert index.register(ServiceDecl(name="Api", source_path="one.ts"))
        assert not index.register(ServiceDecl(name="Api", source_path="two.ts"))
        index.seal()
        assert index.lookup("Api").unit == "one.ts"

    def test_registration_after_sealing_fails(self):
        index = SymbolIndex.build(self._decls())
        with pytest.raises(SymbolIndexSealedError):
            index.register(ServiceDecl(name="Late", source_path="late.ts"))
        with pytest.raises(SymbolIndexSealedError):
            index.register_types_unit("types.ts")


class TestIRBuilder:
    def test_field_classification(self, build_ir):
        node, sink = build_ir(COUNTER, "src/app/counter.component.ts",
                              others={"src/app/user.service.ts": USER_SERVICE})
        assert isinstance(node, ComponentIR)
        assert [cell.name for cell in node.state] == ["label", "ticks"]
        assert [c.name for c in node.constants] == ["STEP", "limit"]
        assert node.constants[0].static
        assert [r.name for r in node.refs] == ["sub"]
        assert [m.name for m in node.methods] == ["tick"]
        assert sink.items == []

    def test_service_dependency_is_resolved(self, build_ir):
        node, _ = build_ir(COUNTER, "src/app/counter.component.ts",
                           others={"src/app/user.service.ts": USER_SERVICE})
        (dep,) = node.dependencies
        assert dep.kind == DependencyKind.SERVICE
        assert dep.target == "UserService"
        assert dep.target_unit == "src/app/user.service.ts"

    def test_unknown_dependency_is_reported(self, build_ir):
        node, sink = build_ir(COUNTER, "src/app/counter.component.ts")
        assert node.dependencies[0].kind == DependencyKind.UNRESOLVED
        assert [d.code for d in sink.items] == [DiagnosticCode.UNRESOLVED_REFERENCE]

    def test_init_and_destroy_fold_into_one_mount_effect(self, build_ir):
        node, _ = build_ir(COUNTER, "src/app/counter.component.ts",
                           others={"src/app/user.service.ts": USER_SERVICE})
        (effect,) = node.effects
        assert effect.trigger == EffectTrigger.MOUNT
        assert effect.deps == []
        assert effect.origin == ["ngOnInit", "ngOnDestroy"]
        assert effect.body.startswith("this.sub = interval(1000).subscribe(")
        assert effect.cleanup.splitlines() == ["this.sub.unsubscribe();", "console.log('bye');"]

    def test_on_changes_keys_on_referenced_inputs(self, build_ir):
        node, _ = build_ir("""
import { Component, Input, OnChanges, SimpleChanges } from '@angular/core';

@Component({ selector: 'app-chart', template: '<p>{{ label }}</p>' })
export class ChartComponent implements OnChanges {
  @Input() data: number[] = [];
  @Input() label = '';
  total = 0;

  ngOnChanges(changes: SimpleChanges) {
    if (changes.data.firstChange) {
      return;
    }
    this.total = changes['data'].currentValue.length;
  }
}
""", "src/app/chart.component.ts")
        (effect,) = node.effects
        assert effect.trigger == EffectTrigger.CHANGES
        assert effect.deps == ["data"]
        assert effect.origin == ["ngOnChanges"]
        assert "if (false)" in effect.body
        assert "this.total = this.data.length;" in effect.body

    def test_manual_input_diffing_becomes_a_stub(self, build_ir):
        node, sink = build_ir(DIFFING, "src/app/diff.component.ts")
        assert isinstance(node, StubIR)
        assert node.unit_kind == UnitKind.COMPONENT
        assert "ngDoCheck" in node.reason
        assert [d.code for d in sink.items] == [DiagnosticCode.MANUAL_REVIEW_REQUIRED]

    def test_service_state(self, build_ir):
        text = """
import { Injectable } from '@angular/core';
import { BehaviorSubject } from 'rxjs';

@Injectable({ providedIn: 'root' })
export class CartService {
  private items = new BehaviorSubject<string[]>([]);
  readonly currency = 'EUR';

  add(item: string) {
    this.items.next([...this.items.value, item]);
  }
}
"""
        node, _ = build_ir(text, "src/app/cart.service.ts")
        assert isinstance(node, ServiceIR)
        (cell,) = node.state
        assert (cell.name, cell.type, cell.initial, cell.origin) == ("items", "string[]", "[]", "subject")
        assert node.subjects == ["items"]
        assert [c.name for c in node.constants] == ["currency"]

    def test_unknown_template_element_and_pipe(self, build_ir):
        text = """
import { Component } from '@angular/core';

@Component({ selector: 'app-shell', template: '<app-missing></app-missing>{{ title | fancy }}' })
export class ShellComponent {
  title = 'Shell';
}
"""
        _, sink = build_ir(text, "src/app/shell.component.ts")
        messages = [d.message for d in sink.items]
        assert messages == ["Unknown element <app-missing>", "Unknown pipe 'fancy'"]
        assert all(d.code == DiagnosticCode.UNRESOLVED_REFERENCE for d in sink.items)
