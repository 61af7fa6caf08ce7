"""
Shared support modules referenced by generated code.

Each module is emitted once per run, however many artifacts import it.
"""

from .target import ArtifactRef, HookArtifact, UtilArtifact

CLASS_NAMES_REF = ArtifactRef("utils", "classNames")
ANGULAR_PIPES_REF = ArtifactRef("utils", "angularPipes")
OBSERVABLE_VALUE_REF = ArtifactRef("hooks", "useObservableValue")
HTTP_CLIENT_REF = ArtifactRef("hooks", "useHttpClient")

CLASS_NAMES_SOURCE = """\
export type ClassValue = string | null | undefined | false | Record<string, unknown> | ClassValue[];

export function classNames(...values: ClassValue[]): string {
  const classes: string[] = [];
  for (const value of values) {
    if (!value) continue;
    if (typeof value === 'string') {
      classes.push(...value.split(/\\s+/).filter(Boolean));
    } else if (Array.isArray(value)) {
      const nested = classNames(...value);
      if (nested) classes.push(nested);
    } else {
      for (const [name, enabled] of Object.entries(value)) {
        if (enabled) classes.push(name);
      }
    }
  }
  return classes.join(' ');
}
"""

ANGULAR_PIPES_SOURCE = """\
export function uppercase(value: string | null | undefined): string {
  return value == null ? '' : String(value).toUpperCase();
}

export function lowercase(value: string | null | undefined): string {
  return value == null ? '' : String(value).toLowerCase();
}

export function titlecase(value: string | null | undefined): string {
  return value == null ? '' : String(value).replace(/\\w\\S*/g, (word) => word[0].toUpperCase() + word.slice(1).toLowerCase());
}

export function json(value: unknown): string {
  return JSON.stringify(value, null, 2);
}

export function slice<T>(value: T[] | string | null | undefined, start: number, end?: number): T[] | string {
  return value == null ? [] : value.slice(start, end);
}

export function formatDate(value: Date | string | number | null | undefined, format: string = 'mediumDate', locale?: string): string {
  if (value == null || value === '') return '';
  const date = value instanceof Date ? value : new Date(value);
  const styles: Record<string, Intl.DateTimeFormatOptions> = {
    short: { dateStyle: 'short', timeStyle: 'short' },
    medium: { dateStyle: 'medium', timeStyle: 'medium' },
    long: { dateStyle: 'long', timeStyle: 'long' },
    full: { dateStyle: 'full', timeStyle: 'full' },
    shortDate: { dateStyle: 'short' },
    mediumDate: { dateStyle: 'medium' },
    longDate: { dateStyle: 'long' },
    fullDate: { dateStyle: 'full' },
    shortTime: { timeStyle: 'short' },
    mediumTime: { timeStyle: 'medium' },
  };
  return new Intl.DateTimeFormat(locale, styles[format] ?? styles.mediumDate).format(date);
}

export function formatCurrency(value: number | null | undefined, currency: string = 'USD', display: string = 'symbol', digits?: string, locale?: string): string {
  if (value == null) return '';
  const [minimumFractionDigits, maximumFractionDigits] = parseDigits(digits);
  return new Intl.NumberFormat(locale, {
    style: 'currency',
    currency,
    currencyDisplay: display === 'code' ? 'code' : 'symbol',
    minimumFractionDigits,
    maximumFractionDigits,
  }).format(value);
}

export function formatNumber(value: number | null | undefined, digits?: string, locale?: string): string {
  if (value == null) return '';
  const [minimumFractionDigits, maximumFractionDigits] = parseDigits(digits);
  return new Intl.NumberFormat(locale, { minimumFractionDigits, maximumFractionDigits }).format(value);
}

export function formatPercent(value: number | null | undefined, digits?: string, locale?: string): string {
  if (value == null) return '';
  const [minimumFractionDigits, maximumFractionDigits] = parseDigits(digits);
  return new Intl.NumberFormat(locale, { style: 'percent', minimumFractionDigits, maximumFractionDigits }).format(value);
}

export function keyvalue<V>(value: Record<string, V> | Map<string, V> | null | undefined): { key: string; value: V }[] {
  if (value == null) return [];
  const entries = value instanceof Map ? Array.from(value.entries()) : Object.entries(value);
  return entries
    .map(([key, item]) => ({ key, value: item }))
    .sort((a, b) => (a.key < b.key ? -1 : a.key > b.key ? 1 : 0));
}

function parseDigits(digits?: string): [number | undefined, number | undefined] {
  const match = /^(\\d+)\\.(\\d+)-(\\d+)$/.exec(digits ?? '');
  if (!match) return [undefined, undefined];
  return [Number(match[2]), Number(match[3])];
}
"""

OBSERVABLE_VALUE_SOURCE = """\
import { useEffect, useState } from 'react';

type Subscribable<T> = { subscribe(next: (value: T) => void): { unsubscribe(): void } };

export function useObservableValue<T>(source: Subscribable<T> | PromiseLike<T> | T | null | undefined): T | undefined {
  const [value, setValue] = useState<T | undefined>(undefined);

  useEffect(() => {
    if (source && typeof (source as Subscribable<T>).subscribe === 'function') {
      const subscription = (source as Subscribable<T>).subscribe(setValue);
      return () => subscription.unsubscribe();
    }
    if (source && typeof (source as PromiseLike<T>).then === 'function') {
      let active = true;
      (source as PromiseLike<T>).then((result) => {
        if (active) setValue(result);
      });
      return () => {
        active = false;
      };
    }
    setValue(source as T | undefined);
    return undefined;
  }, [source]);

  return value;
}
"""

HTTP_CLIENT_SOURCE = """\
import { useMemo } from 'react';

export interface HttpRequest<T> extends Promise<T> {
  subscribe(next?: (value: T) => void, error?: (reason: unknown) => void): { unsubscribe(): void };
}

export interface HttpOptions {
  headers?: Record<string, string>;
  params?: Record<string, string | number | boolean>;
}

function withParams(url: string, params?: HttpOptions['params']): string {
  if (!params) return url;
  const query = new URLSearchParams();
  for (const [key, value] of Object.entries(params)) {
    query.set(key, String(value));
  }
  return `${url}${url.includes('?') ? '&' : '?'}${query.toString()}`;
}

function request<T>(method: string, url: string, body?: unknown, options: HttpOptions = {}): HttpRequest<T> {
  const promise = fetch(withParams(url, options.params), {
    method,
    headers: { 'Content-Type': 'application/json', ...(options.headers ?? {}) },
    body: body === undefined ? undefined : JSON.stringify(body),
  }).then(async (response) => {
    if (!response.ok) {
      throw new Error(`${method} ${url} failed with status ${response.status}`);
    }
    const text = await response.text();
    return (text ? JSON.parse(text) : undefined) as T;
  });
  return Object.assign(promise, {
    subscribe(next?: (value: T) => void, error?: (reason: unknown) => void) {
      let active = true;
      promise.then(
        (value) => {
          if (active && next) next(value);
        },
        (reason) => {
          if (active && error) error(reason);
        },
      );
      return {
        unsubscribe() {
          active = false;
        },
      };
    },
  });
}

export function useHttpClient() {
  return useMemo(
    () => ({
      get: <T = unknown>(url: string, options?: HttpOptions) => request<T>('GET', url, undefined, options),
      delete: <T = unknown>(url: string, options?: HttpOptions) => request<T>('DELETE', url, undefined, options),
      post: <T = unknown>(url: string, body?: unknown, options?: HttpOptions) => request<T>('POST', url, body, options),
      put: <T = unknown>(url: string, body?: unknown, options?: HttpOptions) => request<T>('PUT', url, body, options),
      patch: <T = unknown>(url: string, body?: unknown, options?: HttpOptions) => request<T>('PATCH', url, body, options),
    }),
    [],
  );
}
"""


def class_names_artifact() -> UtilArtifact:
    return UtilArtifact(CLASS_NAMES_REF, "classNames", raw=CLASS_NAMES_SOURCE, shared=True)


def angular_pipes_artifact() -> UtilArtifact:
    return UtilArtifact(ANGULAR_PIPES_REF, "angularPipes", raw=ANGULAR_PIPES_SOURCE, shared=True)


def observable_value_artifact() -> HookArtifact:
    return HookArtifact(OBSERVABLE_VALUE_REF, "useObservableValue", raw=OBSERVABLE_VALUE_SOURCE, shared=True)


def http_client_artifact() -> HookArtifact:
    return HookArtifact(HTTP_CLIENT_REF, "useHttpClient", raw=HTTP_CLIENT_SOURCE, shared=True)


SUPPORT_ARTIFACTS = {
    CLASS_NAMES_REF: class_names_artifact,
    ANGULAR_PIPES_REF: angular_pipes_artifact,
    OBSERVABLE_VALUE_REF: observable_value_artifact,
    HTTP_CLIENT_REF: http_client_artifact,
}
